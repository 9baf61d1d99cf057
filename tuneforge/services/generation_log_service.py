# Copyright (c) US Inc. All rights reserved.
"""Read access to a user's generation history"""

from typing import List

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import NotFoundError
from ..models.db_models import GenerationLog
from ..models.schemas import GenerationStats
from .repository import GenerationLogRepository

MAX_PAGE_SIZE = 200


class GenerationLogService:
    """Every query is scoped to the requesting user."""

    def __init__(self, repository: GenerationLogRepository, settings: Settings = default_settings):
        self.repository = repository
        self.settings = settings

    def list_logs(self, user_id: str, limit: int = 50, offset: int = 0) -> List[GenerationLog]:
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        return self.repository.recent(user_id=user_id, limit=limit, offset=max(offset, 0))

    def get_log(self, log_id: str, user_id: str) -> GenerationLog:
        log = self.repository.get(log_id)
        if log is None or log.user_id != user_id:
            raise NotFoundError(f"Generation log not found: {log_id}", user_message="Log not found")
        return log

    def stats(self, user_id: str) -> GenerationStats:
        count, tokens, avg_ms = self.repository.totals(user_id=user_id)
        return GenerationStats(
            total_requests=count,
            total_tokens=tokens,
            avg_generation_time_ms=round(avg_ms),
            estimated_cost=tokens / 1000 * self.settings.ESTIMATED_COST_PER_1K_TOKENS,
        )
