# Copyright (c) US Inc. All rights reserved.
"""User feedback on generated competencies"""

import json
import logging
from typing import Dict, List, Optional, Tuple

from ..models.db_models import Feedback
from ..models.schemas import FeedbackRequest, FeedbackType
from .repository import FeedbackRepository

logger = logging.getLogger(__name__)


class FeedbackService:

    def __init__(self, repository: FeedbackRepository):
        self.repository = repository

    def submit(self, request: FeedbackRequest, user_id: str, user_name: Optional[str] = None) -> Feedback:
        ai_response = request.ai_response
        if not isinstance(ai_response, str):
            ai_response = json.dumps(ai_response, ensure_ascii=False)

        feedback = Feedback(
            prompt=request.prompt,
            ai_response=ai_response,
            user_feedback=request.user_feedback.value,
            expected_response=request.expected_response,
            comments=request.comments,
            industry=request.industry,
            organization=request.organization,
            job_role=request.job_role,
            competency_name=request.competency_name,
            model_used=request.model_used,
            user_id=user_id,
            user_name=user_name,
        )
        self.repository.add(feedback)
        logger.info("Feedback %s (%s) from %s", feedback.id, feedback.user_feedback, user_id)
        return feedback

    def list_feedback(
        self,
        user_id: str,
        feedback_type: Optional[FeedbackType] = None,
        limit: int = 50,
    ) -> Tuple[List[Feedback], Dict[str, int]]:
        """The user's most recent feedback and per-type counts over all of it."""
        items = self.repository.recent(
            user_id=user_id,
            feedback_type=feedback_type.value if feedback_type else None,
            limit=limit,
        )
        return items, self.repository.counts_by_type(user_id=user_id)
