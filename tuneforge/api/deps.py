# Copyright (c) US Inc. All rights reserved.
"""Request-scoped dependencies"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db
from ..core.exceptions import (
    DatasetValidationError,
    DocumentBusyError,
    GenerationError,
    NotFoundError,
    TuneforgeError,
)
from ..services.dataset_validator import DatasetValidator
from ..services.competency_service import CompetencyService
from ..services.document_service import DocumentService
from ..services.feedback_service import FeedbackService
from ..services.generation_client import GenerationClient, OpenAICompatibleClient
from ..services.generation_log_service import GenerationLogService
from ..services.job_manager import job_manager
from ..services.job_orchestrator import JobOrchestrator
from ..services.repository import FeedbackRepository, GenerationLogRepository, SqlDocumentRepository
from ..services.training_dispatcher import TrainingDispatcher


@dataclass
class CurrentUser:
    id: str
    name: Optional[str] = None


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> CurrentUser:
    # authentication happens upstream; the gateway forwards the user id
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return CurrentUser(id=x_user_id, name=x_user_name)


def get_generation_client() -> Optional[GenerationClient]:
    if not settings.generation_enabled:
        return None
    return OpenAICompatibleClient.from_settings(settings)


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    return DocumentService(SqlDocumentRepository(db), settings=settings, job_manager=job_manager)


def get_orchestrator(
    db: Session = Depends(get_db),
    client: Optional[GenerationClient] = Depends(get_generation_client),
) -> JobOrchestrator:
    dispatcher = TrainingDispatcher.from_settings(settings) if settings.remote_dispatch_enabled else None
    return JobOrchestrator(
        repository=SqlDocumentRepository(db),
        validator=DatasetValidator.from_settings(client, settings=settings),
        dispatcher=dispatcher,
        job_manager=job_manager,
        settings=settings,
    )


def get_competency_service(
    db: Session = Depends(get_db),
    client: Optional[GenerationClient] = Depends(get_generation_client),
) -> CompetencyService:
    return CompetencyService(client, SqlDocumentRepository(db), GenerationLogRepository(db), settings=settings)


def get_generation_log_service(db: Session = Depends(get_db)) -> GenerationLogService:
    return GenerationLogService(GenerationLogRepository(db), settings=settings)


def get_feedback_service(db: Session = Depends(get_db)) -> FeedbackService:
    return FeedbackService(FeedbackRepository(db))


def http_error(error: TuneforgeError) -> HTTPException:
    if isinstance(error, NotFoundError):
        status_code = 404
    elif isinstance(error, (DocumentBusyError, DatasetValidationError)):
        status_code = 400
    elif isinstance(error, GenerationError):
        status_code = 502
    else:
        # ConfigurationError and anything unexpected
        status_code = 500
    return HTTPException(
        status_code=status_code,
        detail={"error": error.user_message, "error_code": error.error_code},
    )
