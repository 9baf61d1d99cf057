# Copyright (c) US Inc. All rights reserved.
import asyncio
import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient

from tests.fakes import csv_bytes
from tuneforge.core.config import settings
from tuneforge.core.database import Database, set_database
from tuneforge.main import app
from tuneforge.models.db_models import GenerationLog
from tuneforge.services.job_manager import JobManager

USER = {'X-User-Id': 'user-1', 'X-User-Name': 'Ada'}


class TestDocumentsApi(unittest.TestCase):

    def setUp(self):
        self.upload_dir = tempfile.mkdtemp()
        self._saved = {
            name: getattr(settings, name)
            for name in ('UPLOAD_DIR', 'MIN_TRAINING_SECONDS', 'REMOTE_HOST', 'LLM_API_KEY')
        }
        settings.UPLOAD_DIR = Path(self.upload_dir)
        settings.MIN_TRAINING_SECONDS = 0.0
        settings.REMOTE_HOST = None
        settings.LLM_API_KEY = None
        self.database = Database('sqlite://')
        set_database(self.database)
        self.client = TestClient(app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)
        set_database(None)
        for name, value in self._saved.items():
            setattr(settings, name, value)
        shutil.rmtree(self.upload_dir, ignore_errors=True)

    def _upload(self, name, content):
        resp = self.client.post('/api/documents/upload', files={'file': (name, content)}, headers=USER)
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()['data']

    def test_health(self):
        self.assertEqual(self.client.get('/health').json(), {'status': 'healthy', 'service': 'tuneforge-api'})

    def test_requires_user(self):
        self.assertEqual(self.client.get('/api/documents').status_code, 401)

    def test_upload_rejects_unsupported_format(self):
        resp = self.client.post('/api/documents/upload', files={'file': ('a.txt', b'hi')}, headers=USER)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['detail']['error_code'], 'UNSUPPORTED_FORMAT')

    def test_upload_and_fine_tune(self):
        a = self._upload('a.csv', csv_bytes(50))
        b = self._upload('b.json', json.dumps([{'q': i} for i in range(10)]).encode())
        self.assertEqual(a['status'], 'uploaded')

        resp = self.client.post('/api/documents/fine-tune', json={'document_ids': [a['id'], b['id']]}, headers=USER)
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual(body['status'], 'completed')
        self.assertEqual(body['total_records'], 60)

        listed = self.client.get('/api/documents', headers=USER).json()['data']
        self.assertEqual({d['status'] for d in listed}, {'fine_tuning_completed'})

        resp = self.client.post('/api/documents/fine-tune', json={'document_ids': [a['id']]}, headers=USER)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['status'], 'rejected')

    def test_fine_tune_validation_failure(self):
        bad = self._upload('bad.csv', b'question,answer\n')
        resp = self.client.post('/api/documents/fine-tune', json={'document_ids': [bad['id']]}, headers=USER)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['status'], 'validation_failed')
        doc = self.client.get(f"/api/documents/{bad['id']}", headers=USER).json()['data']
        self.assertEqual(doc['status'], 'validation_failed')

    def test_other_users_cannot_see_or_delete(self):
        doc = self._upload('a.csv', csv_bytes(2))
        other = {'X-User-Id': 'user-2'}
        self.assertEqual(self.client.get(f"/api/documents/{doc['id']}", headers=other).status_code, 404)
        self.assertEqual(self.client.delete(f"/api/documents/{doc['id']}", headers=other).status_code, 404)
        self.assertEqual(self.client.delete(f"/api/documents/{doc['id']}", headers=USER).status_code, 200)
        self.assertEqual(self.client.get(f"/api/documents/{doc['id']}", headers=USER).status_code, 404)

    def test_normalize_endpoint(self):
        resp = self.client.post('/api/playground/normalize', json={'raw_text': '{"roles": [{"name": "N"}]}'},
                                headers=USER)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['data']['competencies'][0]['Name'], 'N')

        resp = self.client.post('/api/playground/normalize', json={'raw_text': 'not json'}, headers=USER)
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()['rawSample'], 'not json')

    def test_competency_requires_model_configuration(self):
        resp = self.client.post('/api/playground/competency', json={'input_text': 'analyst'}, headers=USER)
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()['detail']['error_code'], 'CONFIGURATION_ERROR')

    def test_batch_logs_are_visible_only_to_their_owner(self):
        manager = JobManager()
        asyncio.run(manager.register_batch('batch-1', ['A'], 'user-1'))
        manager.add_log('batch-1', 'epoch 1')
        with mock.patch('tuneforge.api.endpoints.documents.job_manager', manager):
            resp = self.client.get('/api/documents/batches/batch-1/logs', headers=USER)
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(resp.json()['logs'], ['epoch 1'])

            resp = self.client.get('/api/documents/batches/batch-1/logs', headers={'X-User-Id': 'user-2'})
            self.assertEqual(resp.status_code, 404)
            resp = self.client.get('/api/documents/batches/unknown/logs', headers=USER)
            self.assertEqual(resp.status_code, 404)

    def test_generation_logs_endpoints(self):
        db = self.database.new_session()
        try:
            db.add(GenerationLog(id='log-1', request_type='playground_test', input_data={'inputText': 'x'},
                                 tokens_used=2000, response_time_ms=120, user_id='user-1', extra={'count': 3}))
            db.add(GenerationLog(id='log-2', request_type='playground_test', input_data={'inputText': 'y'},
                                 tokens_used=10, response_time_ms=10, user_id='user-2'))
            db.commit()
        finally:
            db.close()

        body = self.client.get('/api/logs', headers=USER).json()
        self.assertEqual([log['id'] for log in body['data']], ['log-1'])
        self.assertEqual(body['data'][0]['metadata'], {'count': 3})
        self.assertEqual(body['pagination'], {'limit': 50, 'offset': 0, 'count': 1})

        stats = self.client.get('/api/logs/stats', headers=USER).json()['data']
        self.assertEqual(stats['total_requests'], 1)
        self.assertEqual(stats['total_tokens'], 2000)

        self.assertEqual(self.client.get('/api/logs/log-1', headers=USER).status_code, 200)
        self.assertEqual(self.client.get('/api/logs/log-2', headers=USER).status_code, 404)

    def test_feedback_endpoints(self):
        resp = self.client.post('/api/playground/feedback', headers=USER, json={
            'prompt': 'FP&A lead',
            'ai_response': [{'Name': 'Forecasting'}],
            'user_feedback': 'accurate',
        })
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()['data']['user_name'], 'Ada')

        resp = self.client.post('/api/playground/feedback', headers=USER,
                                json={'prompt': 'p', 'ai_response': 'r', 'user_feedback': 'great'})
        self.assertEqual(resp.status_code, 422)

        body = self.client.get('/api/playground/feedback?feedback_type=accurate', headers=USER).json()
        self.assertEqual(len(body['data']), 1)
        self.assertEqual(body['stats'], {'accurate': 1})


if __name__ == '__main__':
    unittest.main()
