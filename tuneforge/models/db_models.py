# Copyright (c) US Inc. All rights reserved.
"""SQLAlchemy models"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from ..core.database import Base
from .schemas import DocumentStatus


def _new_id() -> str:
    return str(uuid.uuid4())


class Document(Base):
    """An uploaded dataset and its fine-tuning lifecycle"""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    filename = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    file_type = Column(String(16), nullable=False)

    status = Column(String(32), nullable=False, default=DocumentStatus.UPLOADED.value, index=True)
    dataset_analysis = Column(JSON, nullable=True)

    fine_tuning_job_id = Column(String(36), nullable=True, index=True)
    fine_tuning_status = Column(String(16), nullable=True)
    error_message = Column(Text, nullable=True)
    model_path = Column(String(1024), nullable=True)
    training_output = Column(Text, nullable=True)

    uploaded_by = Column(String(64), nullable=False, index=True)
    uploaded_by_name = Column(String(255), nullable=True, default="")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    fine_tuning_completed_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Document {self.id} {self.filename} status={self.status}>"


class GenerationLog(Base):
    """One call to the generative model and what came back"""

    __tablename__ = "generation_logs"

    id = Column(String(36), primary_key=True, default=_new_id)
    request_type = Column(String(64), nullable=False, index=True)
    input_data = Column(JSON, nullable=False)
    output_data = Column(JSON, nullable=True)
    model_used = Column(String(128), nullable=True)
    tokens_used = Column(Integer, nullable=True, default=0)
    response_time_ms = Column(Integer, nullable=True)
    status = Column(String(16), nullable=False, default="success")
    error_message = Column(Text, nullable=True)
    user_id = Column(String(64), nullable=True, index=True)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class Feedback(Base):
    """A user's judgment of one generated response"""

    __tablename__ = "ai_feedback"

    id = Column(String(36), primary_key=True, default=_new_id)
    prompt = Column(Text, nullable=False)
    ai_response = Column(Text, nullable=False)
    user_feedback = Column(String(32), nullable=False, index=True)
    expected_response = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)
    industry = Column(String(255), nullable=True)
    organization = Column(String(255), nullable=True)
    job_role = Column(String(255), nullable=True)
    competency_name = Column(String(255), nullable=True)
    model_used = Column(String(128), nullable=True)
    user_id = Column(String(64), nullable=True, index=True)
    user_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
