# Copyright (c) US Inc. All rights reserved.
import json
import unittest

from pydantic import ValidationError

from tests.fakes import memory_database
from tuneforge.models.schemas import FeedbackRequest, FeedbackType
from tuneforge.services.feedback_service import FeedbackService
from tuneforge.services.repository import FeedbackRepository


class TestFeedbackService(unittest.TestCase):

    def setUp(self):
        self.database = memory_database()
        self.session = self.database.new_session()
        self.service = FeedbackService(FeedbackRepository(self.session))

    def tearDown(self):
        self.session.close()
        self.database.dispose()

    def test_submit_serializes_structured_response(self):
        response = [{'Name': 'Forecasting'}]
        feedback = self.service.submit(
            FeedbackRequest(prompt='FP&A lead', ai_response=response, user_feedback='partially_accurate',
                            competency_name='Forecasting'),
            'user-1', 'Ada')
        self.assertEqual(json.loads(feedback.ai_response), response)
        self.assertEqual(feedback.user_feedback, 'partially_accurate')
        self.assertEqual(feedback.user_name, 'Ada')
        self.assertIsNotNone(feedback.id)

    def test_list_filters_and_counts(self):
        for kind in ('accurate', 'accurate', 'inaccurate'):
            self.service.submit(FeedbackRequest(prompt='p', ai_response='r', user_feedback=kind), 'user-1')
        self.service.submit(FeedbackRequest(prompt='p', ai_response='r', user_feedback='accurate'), 'user-2')

        items, stats = self.service.list_feedback('user-1')
        self.assertEqual(len(items), 3)
        self.assertEqual(stats, {'accurate': 2, 'inaccurate': 1})

        items, _ = self.service.list_feedback('user-1', feedback_type=FeedbackType.INACCURATE)
        self.assertEqual([f.user_feedback for f in items], ['inaccurate'])

    def test_request_requires_response_and_known_type(self):
        with self.assertRaises(ValidationError):
            FeedbackRequest(prompt='p', ai_response='', user_feedback='accurate')
        with self.assertRaises(ValidationError):
            FeedbackRequest(prompt='p', ai_response='r', user_feedback='great')
        with self.assertRaises(ValidationError):
            FeedbackRequest(prompt='', ai_response='r', user_feedback='accurate')


if __name__ == '__main__':
    unittest.main()
