# Copyright (c) US Inc. All rights reserved.
"""In-flight batch tracking and per-batch progress logs"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set

from ..core.exceptions import BatchRejectedError

logger = logging.getLogger(__name__)

MAX_LOG_LINES = 1000
MAX_RETAINED_BATCHES = 100


@dataclass
class BatchInfo:
    batch_id: str
    document_ids: List[str]
    user_id: str
    started_at: datetime = field(default_factory=datetime.now)
    dispatching: bool = False


@dataclass
class BatchLog:
    user_id: Optional[str]
    lines: List[str] = field(default_factory=list)


class JobManager:
    """Keeps one document out of two concurrently running batches.

    Logs outlive their batch so the output can be read after it finishes;
    only the most recent ``max_retained_batches`` finished batches keep them.
    """

    def __init__(self, max_retained_batches: int = MAX_RETAINED_BATCHES):
        self.max_retained_batches = max_retained_batches
        self._batches: Dict[str, BatchInfo] = {}
        self._documents: Dict[str, str] = {}
        self._logs: "OrderedDict[str, BatchLog]" = OrderedDict()
        self._lock = asyncio.Lock()

    async def register_batch(self, batch_id: str, document_ids: Sequence[str], user_id: str) -> BatchInfo:
        """Claim ``document_ids`` for ``batch_id``; refuses if any is already claimed."""
        async with self._lock:
            busy = [doc_id for doc_id in document_ids if doc_id in self._documents]
            if busy:
                raise BatchRejectedError(
                    f"Documents already in a running batch: {', '.join(busy)}",
                    document_ids=busy,
                    error_code="DOCUMENTS_IN_FLIGHT",
                )
            batch = BatchInfo(batch_id=batch_id, document_ids=list(document_ids), user_id=user_id)
            self._batches[batch_id] = batch
            for doc_id in document_ids:
                self._documents[doc_id] = batch_id
            self._logs[batch_id] = BatchLog(user_id=user_id)
            self._evict_logs()
            return batch

    async def mark_dispatching(self, batch_id: str) -> None:
        async with self._lock:
            batch = self._batches.get(batch_id)
            if batch is None:
                raise KeyError(batch_id)
            if batch.dispatching:
                raise RuntimeError(f"Batch {batch_id} is already dispatched")
            batch.dispatching = True

    async def release_batch(self, batch_id: str) -> None:
        """Release the batch's documents. Logs stay readable."""
        async with self._lock:
            batch = self._batches.pop(batch_id, None)
            if batch is None:
                return
            for doc_id in batch.document_ids:
                if self._documents.get(doc_id) == batch_id:
                    del self._documents[doc_id]
            self._evict_logs()

    def is_in_flight(self, document_id: str) -> bool:
        return document_id in self._documents

    def in_flight_documents(self) -> Set[str]:
        return set(self._documents)

    async def get_batch(self, batch_id: str) -> Optional[BatchInfo]:
        return self._batches.get(batch_id)

    def add_log(self, batch_id: str, log_line: str) -> None:
        """Add a log line to a registered batch"""
        log = self._logs.get(batch_id)
        if log is None:
            logger.debug("Dropping log line for unknown batch %s", batch_id)
            return
        log.lines.append(log_line)
        # Keep only last MAX_LOG_LINES lines
        if len(log.lines) > MAX_LOG_LINES:
            log.lines = log.lines[-MAX_LOG_LINES:]

    def log_owner(self, batch_id: str) -> Optional[str]:
        log = self._logs.get(batch_id)
        return log.user_id if log else None

    def get_logs(self, batch_id: str, last_n: int = 100) -> List[str]:
        log = self._logs.get(batch_id)
        if log is None:
            return []
        return log.lines[-last_n:]

    def clear_logs(self, batch_id: str) -> None:
        self._logs.pop(batch_id, None)

    def retained_log_count(self) -> int:
        return len(self._logs)

    def _evict_logs(self) -> None:
        # oldest first; running batches are never evicted
        excess = len(self._logs) - self.max_retained_batches - len(self._batches)
        for batch_id in list(self._logs):
            if excess <= 0:
                break
            if batch_id in self._batches:
                continue
            del self._logs[batch_id]
            excess -= 1


# Global instance
job_manager = JobManager()
