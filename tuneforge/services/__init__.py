# Copyright (c) US Inc. All rights reserved.
from .job_manager import JobManager, job_manager
from .repository import DocumentRepository, SqlDocumentRepository, GenerationLogRepository, FeedbackRepository
from .file_source import FileSource, LocalFileSource
from .generation_client import Completion, GenerationClient, OpenAICompatibleClient
from .dataset_validator import DatasetPromptBuilder, DatasetValidator
from .output_normalizer import (
    COMPETENCY_SCHEMA, FieldSpec, OutputNormalizer, RecordSchema, normalize_generated_records,
)
from .remote_executor import AsyncSSHExecutor, RemoteExecutor, RemoteTarget
from .training_dispatcher import TrainingDispatcher
from .job_orchestrator import JobOrchestrator
from .document_service import DocumentService
from .competency_service import CompetencyService
from .sanitized_log_service import SanitizedLogService, sanitized_log_service, CrashReason, ErrorSeverity
from .generation_log_service import GenerationLogService
from .feedback_service import FeedbackService
