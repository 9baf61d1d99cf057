# Copyright (c) US Inc. All rights reserved.
"""Document, generation-log and feedback stores"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.db_models import Document, Feedback, GenerationLog


class DocumentRepository(ABC):
    """Store the orchestrator talks to.

    Single-document writes are atomic. ``update_many`` is best-effort across
    documents unless an implementation says otherwise.
    """

    @abstractmethod
    def find(
        self,
        ids: Optional[Sequence[str]] = None,
        uploaded_by: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Document]:
        ...

    @abstractmethod
    def get(self, document_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    def save(self, document: Document) -> Document:
        ...

    @abstractmethod
    def update_many(self, ids: Sequence[str], patch: Dict[str, Any]) -> int:
        ...

    @abstractmethod
    def delete(self, document: Document) -> None:
        ...

    @abstractmethod
    def latest_with_status(self, statuses: Iterable[str]) -> Optional[Document]:
        ...


class SqlDocumentRepository(DocumentRepository):
    """Repository over an injected SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find(
        self,
        ids: Optional[Sequence[str]] = None,
        uploaded_by: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Document]:
        # populate_existing so callers always act on the committed status
        query = self.db.query(Document).populate_existing()
        if ids is not None:
            query = query.filter(Document.id.in_(list(ids)))
        if uploaded_by is not None:
            query = query.filter(Document.uploaded_by == uploaded_by)
        if status is not None:
            query = query.filter(Document.status == status)
        return query.order_by(Document.created_at.desc()).all()

    def get(self, document_id: str) -> Optional[Document]:
        return (
            self.db.query(Document)
            .populate_existing()
            .filter(Document.id == document_id)
            .first()
        )

    def save(self, document: Document) -> Document:
        document.updated_at = datetime.utcnow()
        self.db.add(document)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return document

    def update_many(self, ids: Sequence[str], patch: Dict[str, Any]) -> int:
        if not ids:
            return 0
        values = dict(patch)
        values.setdefault("updated_at", datetime.utcnow())
        try:
            count = (
                self.db.query(Document)
                .filter(Document.id.in_(list(ids)))
                .update(values, synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        # in-memory instances still hold pre-update values
        self.db.expire_all()
        return count

    def delete(self, document: Document) -> None:
        self.db.delete(document)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def latest_with_status(self, statuses: Iterable[str]) -> Optional[Document]:
        return (
            self.db.query(Document)
            .filter(Document.status.in_(list(statuses)))
            .order_by(Document.created_at.desc())
            .first()
        )


class GenerationLogRepository:

    def __init__(self, db: Session):
        self.db = db

    def add(self, log: GenerationLog) -> GenerationLog:
        self.db.add(log)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return log

    def recent(self, user_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[GenerationLog]:
        query = self.db.query(GenerationLog)
        if user_id:
            query = query.filter(GenerationLog.user_id == user_id)
        return query.order_by(GenerationLog.created_at.desc()).offset(offset).limit(limit).all()

    def get(self, log_id: str) -> Optional[GenerationLog]:
        return self.db.query(GenerationLog).filter(GenerationLog.id == log_id).first()

    def totals(self, user_id: Optional[str] = None) -> Tuple[int, int, float]:
        """Request count, token sum and mean response time."""
        query = self.db.query(
            func.count(GenerationLog.id),
            func.coalesce(func.sum(GenerationLog.tokens_used), 0),
            func.coalesce(func.avg(GenerationLog.response_time_ms), 0),
        )
        if user_id:
            query = query.filter(GenerationLog.user_id == user_id)
        count, tokens, avg_ms = query.one()
        return int(count), int(tokens), float(avg_ms)


class FeedbackRepository:

    def __init__(self, db: Session):
        self.db = db

    def add(self, feedback: Feedback) -> Feedback:
        feedback.updated_at = datetime.utcnow()
        self.db.add(feedback)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return feedback

    def recent(
        self,
        user_id: Optional[str] = None,
        feedback_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[Feedback]:
        query = self.db.query(Feedback)
        if user_id:
            query = query.filter(Feedback.user_id == user_id)
        if feedback_type:
            query = query.filter(Feedback.user_feedback == feedback_type)
        return query.order_by(Feedback.created_at.desc()).limit(limit).all()

    def counts_by_type(self, user_id: Optional[str] = None) -> Dict[str, int]:
        query = self.db.query(Feedback.user_feedback, func.count(Feedback.id))
        if user_id:
            query = query.filter(Feedback.user_id == user_id)
        return {kind: int(count) for kind, count in query.group_by(Feedback.user_feedback).all()}
