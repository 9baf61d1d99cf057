# Copyright (c) US Inc. All rights reserved.
"""Document upload, listing and deletion"""

import logging
import os
import time
from typing import List, Optional

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import DatasetValidationError, DocumentBusyError, DocumentNotFoundError
from ..models.db_models import Document
from ..models.schemas import IN_FLIGHT_STATUSES, DocumentFormat, DocumentStatus
from .file_source import FileSource, LocalFileSource
from .job_manager import JobManager, job_manager as default_job_manager
from .repository import DocumentRepository

logger = logging.getLogger(__name__)


class DocumentService:

    ALLOWED_FORMATS = {f.value for f in DocumentFormat}

    def __init__(
        self,
        repository: DocumentRepository,
        file_source: Optional[FileSource] = None,
        settings: Settings = default_settings,
        job_manager: Optional[JobManager] = None,
    ):
        self.repository = repository
        self.file_source = file_source or LocalFileSource()
        self.settings = settings
        self.job_manager = job_manager or default_job_manager
        self.storage_path = str(settings.UPLOAD_DIR)

    def upload(self, filename: str, content: bytes, user_id: str, user_name: Optional[str] = None) -> Document:
        """Store an uploaded CSV/JSON dataset and create its document in ``uploaded``."""
        safe_name = os.path.basename(filename or "").strip()
        file_ext = safe_name.rsplit(".", 1)[-1].lower() if "." in safe_name else ""
        if file_ext not in self.ALLOWED_FORMATS:
            raise DatasetValidationError(
                f"Unsupported format: {file_ext or 'none'}. Allowed: {sorted(self.ALLOWED_FORMATS)}",
                error_code="UNSUPPORTED_FORMAT",
                user_message="CSV/JSON fine-tuning only",
            )

        file_size = len(content)
        if file_size > self.settings.max_upload_bytes:
            raise DatasetValidationError(
                f"File too large. Max: {self.settings.MAX_UPLOAD_SIZE_MB}MB",
                error_code="FILE_TOO_LARGE",
            )

        file_path = os.path.join(self.storage_path, f"{int(time.time() * 1000)}_{safe_name}")
        self.file_source.write(file_path, content)

        document = Document(
            filename=safe_name,
            file_path=file_path,
            file_size=file_size,
            file_type=file_ext,
            status=DocumentStatus.UPLOADED.value,
            uploaded_by=user_id,
            uploaded_by_name=user_name or "",
        )
        try:
            self.repository.save(document)
        except Exception:
            self.file_source.remove(file_path)
            raise

        logger.info("Uploaded %s (%d bytes) for user %s as %s", safe_name, file_size, user_id, document.id)
        return document

    def list_documents(self, user_id: str) -> List[Document]:
        return self.repository.find(uploaded_by=user_id)

    def get_document(self, document_id: str, user_id: str) -> Document:
        document = self.repository.get(document_id)
        if document is None or document.uploaded_by != user_id:
            raise DocumentNotFoundError(f"Document not found: {document_id}", user_message="Not found")
        return document

    def delete_document(self, document_id: str, user_id: str) -> None:
        document = self.get_document(document_id, user_id)
        # the batch holding it still reads the file until it is released
        if self.job_manager.is_in_flight(document_id) or DocumentStatus(document.status) in IN_FLIGHT_STATUSES:
            raise DocumentBusyError(
                f"Document {document_id} belongs to a running batch",
                user_message="Training in progress",
            )

        try:
            self.file_source.remove(document.file_path)
        except OSError as e:
            logger.warning("Could not remove %s: %s", document.file_path, e)
        self.repository.delete(document)
        logger.info("Deleted document %s", document_id)
