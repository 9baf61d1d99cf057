# Copyright (c) US Inc. All rights reserved.
"""Pydantic schemas for service results and API models"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentStatus(str, Enum):
    """Document lifecycle status"""
    UPLOADED = "uploaded"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    FINE_TUNING_READY = "fine_tuning_ready"
    FINE_TUNING_IN_PROGRESS = "fine_tuning_in_progress"
    FINE_TUNING_COMPLETED = "fine_tuning_completed"
    FINE_TUNING_FAILED = "fine_tuning_failed"


# A running batch owns documents in these states
IN_FLIGHT_STATUSES = frozenset({
    DocumentStatus.VALIDATING,
    DocumentStatus.FINE_TUNING_IN_PROGRESS,
})


class DocumentFormat(str, Enum):
    """Declared record format"""
    CSV = "csv"
    JSON = "json"


class FineTuningStatus(str, Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BatchStatus(str, Enum):
    """Outcome of one batch submission"""
    COMPLETED = "completed"
    VALIDATION_FAILED = "validation_failed"
    FAILED = "failed"
    REJECTED = "rejected"


class DatasetAnalysis(BaseModel):
    """Validator judgment of one dataset"""
    row_count: int = 0
    sample_records: int = 0
    valid: bool = False
    error: str = ""
    prompt: Optional[str] = None
    sample_preview: List[Any] = Field(default_factory=list)


class DocumentInfo(BaseModel):
    """Document metadata returned to callers"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    filename: str
    file_size: int
    file_type: DocumentFormat
    status: DocumentStatus
    dataset_analysis: Optional[DatasetAnalysis] = None
    fine_tuning_job_id: Optional[str] = None
    fine_tuning_status: Optional[FineTuningStatus] = None
    error_message: Optional[str] = None
    model_path: Optional[str] = None
    training_output: Optional[str] = None
    uploaded_by: str
    uploaded_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    fine_tuning_completed_at: Optional[datetime] = None


class DispatchResult(BaseModel):
    """Result of a successful remote training run"""
    success: bool
    output: str = ""
    artifact_path: Optional[str] = None
    exit_code: int = 0


class BatchRequest(BaseModel):
    document_ids: List[str] = Field(..., min_length=1)


class BatchResult(BaseModel):
    """Outcome of ``JobOrchestrator.run_batch``"""
    success: bool
    status: BatchStatus
    batch_id: Optional[str] = None
    message: str = ""
    document_ids: List[str] = Field(default_factory=list)
    total_records: int = 0
    estimated_seconds: float = 0.0
    processing_seconds: float = 0.0
    avg_seconds_per_record: float = 0.0
    prompts_generated: int = 0
    artifact_path: Optional[str] = None
    remote_dispatch: bool = False
    failed_document_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    failure_reason: Optional[str] = None


class NormalizationRequest(BaseModel):
    raw_text: str


class NormalizationResult(BaseModel):
    """Records recovered from generated text, or the reason none were"""
    records: List[Dict[str, str]] = Field(default_factory=list)
    error: Optional[str] = None
    raw_sample: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


class CompetencyRequest(BaseModel):
    input_text: str

    @field_validator("input_text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Input text is required")
        return value


class CompetencyResult(BaseModel):
    success: bool
    competencies: List[Dict[str, str]] = Field(default_factory=list)
    model: Optional[str] = None
    tokens: int = 0
    response_time_ms: int = 0
    count: int = 0
    used_fine_tune: bool = False
    fine_tune_doc_id: Optional[str] = None
    error: Optional[str] = None
    raw_sample: Optional[str] = None


class FeedbackType(str, Enum):
    ACCURATE = "accurate"
    PARTIALLY_ACCURATE = "partially_accurate"
    INACCURATE = "inaccurate"


class FeedbackRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    ai_response: Union[str, Dict[str, Any], List[Any]]
    user_feedback: FeedbackType
    expected_response: Optional[str] = None
    comments: Optional[str] = None
    industry: Optional[str] = None
    organization: Optional[str] = None
    job_role: Optional[str] = None
    competency_name: Optional[str] = None
    model_used: Optional[str] = None

    @field_validator("ai_response")
    @classmethod
    def _response_present(cls, value):
        if value in ("", None, [], {}):
            raise ValueError("AI response is required")
        return value


class FeedbackInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    prompt: str
    ai_response: str
    user_feedback: FeedbackType
    expected_response: Optional[str] = None
    comments: Optional[str] = None
    industry: Optional[str] = None
    organization: Optional[str] = None
    job_role: Optional[str] = None
    competency_name: Optional[str] = None
    model_used: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    created_at: Optional[datetime] = None


class GenerationLogInfo(BaseModel):
    """One generation log entry as returned to its owner"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    request_type: str
    input_data: Any = None
    output_data: Any = None
    model_used: Optional[str] = None
    tokens_used: Optional[int] = 0
    response_time_ms: Optional[int] = None
    status: str
    error_message: Optional[str] = None
    user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra")
    created_at: Optional[datetime] = None


class GenerationStats(BaseModel):
    total_requests: int = 0
    total_tokens: int = 0
    avg_generation_time_ms: int = 0
    estimated_cost: float = 0.0
