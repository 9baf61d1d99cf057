# Copyright (c) US Inc. All rights reserved.
"""Batch fine-tuning orchestration - drives documents through their lifecycle"""

import asyncio
import logging
import time
import uuid
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import BatchRejectedError, DatasetValidationError
from ..models.db_models import Document
from ..models.schemas import (
    BatchResult,
    BatchStatus,
    DatasetAnalysis,
    DocumentStatus,
    FineTuningStatus,
)
from .dataset_validator import DatasetValidator
from .job_manager import JobManager, job_manager as default_job_manager
from .repository import DocumentRepository
from .sanitized_log_service import SanitizedLogService, sanitized_log_service
from .training_dispatcher import TrainingDispatcher

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class _LineAssembler:
    """Reassembles output chunks into whole lines; a chunk may end mid-line."""

    def __init__(self, on_line: Callable[[str], None]):
        self.on_line = on_line
        self._partial = ""

    def feed(self, chunk: str) -> None:
        lines = (self._partial + chunk).split("\n")
        self._partial = lines.pop()
        for line in lines:
            self.on_line(line.rstrip("\r"))

    def flush(self) -> None:
        if self._partial:
            line, self._partial = self._partial, ""
            self.on_line(line.rstrip("\r"))


class JobOrchestrator:
    """Runs one batch of documents through validation and training.

    Outcome is batch-wide: every document completes together or every
    submitted document is marked ``fine_tuning_failed`` with the cause. The
    one exception is a dataset that fails validation, which stops the batch
    and leaves already-validated documents in ``fine_tuning_ready``.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        validator: DatasetValidator,
        dispatcher: Optional[TrainingDispatcher] = None,
        job_manager: Optional[JobManager] = None,
        settings: Settings = default_settings,
        sleep: SleepFunc = asyncio.sleep,
        log_service: SanitizedLogService = sanitized_log_service,
    ):
        self.repository = repository
        self.validator = validator
        self.dispatcher = dispatcher
        self.job_manager = job_manager or default_job_manager
        self.settings = settings
        self._sleep = sleep
        self.log_service = log_service

    async def run_batch(self, document_ids: Sequence[str], requesting_user: str) -> BatchResult:
        ids = list(document_ids or [])
        try:
            documents = self._load_eligible(ids, requesting_user)
        except BatchRejectedError as e:
            return self._rejected(ids, e)

        batch_id = str(uuid.uuid4())
        try:
            await self.job_manager.register_batch(batch_id, ids, requesting_user)
        except BatchRejectedError as e:
            return self._rejected(ids, e)

        try:
            # another batch may have claimed and finished these documents in between
            try:
                documents = self._load_eligible(ids, requesting_user)
            except BatchRejectedError as e:
                return self._rejected(ids, e)
            logger.info("Batch %s: %d document(s) submitted by %s", batch_id, len(ids), requesting_user)
            return await self._process(batch_id, documents, ids)
        finally:
            await self.job_manager.release_batch(batch_id)

    def _load_eligible(self, ids: List[str], user_id: str) -> List[Document]:
        if not ids:
            raise BatchRejectedError("documentIds required")
        if len(set(ids)) != len(ids):
            raise BatchRejectedError("Duplicate document ids in submission", document_ids=ids)

        found = self.repository.find(ids=ids, uploaded_by=user_id, status=DocumentStatus.UPLOADED.value)
        by_id: Dict[str, Document] = {doc.id: doc for doc in found}
        missing = [doc_id for doc_id in ids if doc_id not in by_id]
        if missing:
            raise BatchRejectedError(
                f"Only your uploaded docs can be fine-tuned; not eligible: {', '.join(missing)}",
                document_ids=missing,
            )
        return [by_id[doc_id] for doc_id in ids]

    def _rejected(self, ids: List[str], error: BatchRejectedError) -> BatchResult:
        logger.warning("Batch rejected: %s", error)
        return BatchResult(
            success=False,
            status=BatchStatus.REJECTED,
            message=error.user_message,
            document_ids=ids,
            error=str(error),
            error_code=error.error_code,
        )

    async def _process(self, batch_id: str, documents: List[Document], ids: List[str]) -> BatchResult:
        start_time = time.perf_counter()
        try:
            analyses: Dict[str, DatasetAnalysis] = {}
            for doc in documents:
                doc.status = DocumentStatus.VALIDATING.value
                doc.fine_tuning_job_id = batch_id
                self.repository.save(doc)

                analysis = await self.validator.validate(doc.file_path, doc.file_type)
                doc.dataset_analysis = analysis.model_dump()

                if not analysis.valid or analysis.sample_records == 0:
                    doc.status = DocumentStatus.VALIDATION_FAILED.value
                    doc.error_message = analysis.error or "No valid data"
                    self.repository.save(doc)
                    error = DatasetValidationError(f"Invalid: {doc.filename}")
                    logger.warning("Batch %s: %s (%s)", batch_id, error, doc.error_message)
                    return BatchResult(
                        success=False,
                        status=BatchStatus.VALIDATION_FAILED,
                        batch_id=batch_id,
                        message=str(error),
                        document_ids=ids,
                        failed_document_id=doc.id,
                        error=doc.error_message,
                        error_code=error.error_code,
                    )

                doc.status = DocumentStatus.FINE_TUNING_READY.value
                doc.error_message = None
                self.repository.save(doc)
                analyses[doc.id] = analysis

            total_records = sum(a.row_count for a in analyses.values())
            estimated_seconds = self.settings.estimate_training_seconds(total_records)

            self.repository.update_many(ids, {
                "status": DocumentStatus.FINE_TUNING_IN_PROGRESS.value,
                "fine_tuning_status": FineTuningStatus.RUNNING.value,
            })

            remote = self.dispatcher is not None
            if remote:
                logger.info("Batch %s: dispatching %d records to remote host", batch_id, total_records)
                await self.job_manager.mark_dispatching(batch_id)
                output = _LineAssembler(lambda line: self._record_line(batch_id, line))
                try:
                    dispatch = await asyncio.wait_for(
                        self.dispatcher.dispatch(documents, sink=output.feed),
                        timeout=self.settings.JOB_TIMEOUT_SECONDS,
                    )
                finally:
                    output.flush()
                artifact_path = dispatch.artifact_path
            else:
                logger.info("Batch %s: simulated training, %d records = %.1fs", batch_id, total_records, estimated_seconds)
                await asyncio.wait_for(self._sleep(estimated_seconds), timeout=self.settings.JOB_TIMEOUT_SECONDS)
                artifact_path = f"{self.settings.SIMULATED_ARTIFACT_ROOT.rstrip('/')}/finetuned-{batch_id}"

            elapsed = time.perf_counter() - start_time
            prompts_generated = sum(1 for a in analyses.values() if a.prompt)
            summary = (
                f"Fine-tuning completed in {elapsed:.1f}s\n"
                f"Processed {total_records} records from {len(ids)} dataset(s)\n"
                f"Generation prompts created: {prompts_generated}/{len(ids)}"
            )
            self.repository.update_many(ids, {
                "status": DocumentStatus.FINE_TUNING_COMPLETED.value,
                "fine_tuning_status": FineTuningStatus.SUCCEEDED.value,
                "model_path": artifact_path,
                "training_output": summary,
                "error_message": None,
                "fine_tuning_completed_at": datetime.utcnow(),
            })
            logger.info("Batch %s: completed in %.1fs", batch_id, elapsed)

            return BatchResult(
                success=True,
                status=BatchStatus.COMPLETED,
                batch_id=batch_id,
                message=f"Fine-tuning complete! {len(ids)} datasets processed ({total_records} total records)",
                document_ids=ids,
                total_records=total_records,
                estimated_seconds=estimated_seconds,
                processing_seconds=round(elapsed, 3),
                avg_seconds_per_record=round(elapsed / max(total_records, 1), 6),
                prompts_generated=prompts_generated,
                artifact_path=artifact_path,
                remote_dispatch=remote,
            )

        except asyncio.CancelledError:
            self._fail_all(batch_id, ids, "Batch cancelled", FineTuningStatus.CANCELLED)
            raise
        except asyncio.TimeoutError:
            message = f"Job exceeded maximum runtime ({self.settings.JOB_TIMEOUT_SECONDS:.0f} seconds)"
            return self._failed(batch_id, ids, message, "TRAINING_TIMEOUT", time.perf_counter() - start_time)
        except Exception as e:
            logger.exception("Batch %s: fine-tuning error", batch_id)
            error_code = getattr(e, "error_code", "TRAINING_FAILED")
            return self._failed(batch_id, ids, str(e) or type(e).__name__, error_code, time.perf_counter() - start_time)

    def _failed(self, batch_id: str, ids: List[str], message: str, error_code: str, elapsed: float) -> BatchResult:
        self._fail_all(batch_id, ids, message)
        classified = self.log_service.classify_failure(message)
        return BatchResult(
            success=False,
            status=BatchStatus.FAILED,
            batch_id=batch_id,
            message=classified["user_message"],
            document_ids=ids,
            processing_seconds=round(elapsed, 3),
            error=message,
            error_code=error_code,
            failure_reason=classified["reason"].value,
        )

    def _fail_all(
        self,
        batch_id: str,
        ids: List[str],
        message: str,
        fine_tuning_status: FineTuningStatus = FineTuningStatus.FAILED,
    ) -> None:
        """Mark every submitted document failed, whichever one caused it."""
        try:
            self.repository.update_many(ids, {
                "status": DocumentStatus.FINE_TUNING_FAILED.value,
                "fine_tuning_status": fine_tuning_status.value,
                "error_message": message,
            })
        except Exception:
            logger.exception("Batch %s: could not mark documents failed", batch_id)
            raise

    def _record_line(self, batch_id: str, line: str) -> None:
        if line.strip():
            logger.debug("[GPU %s] %s", batch_id[:8], line)
            display = self.log_service.sanitize_for_display(line)
            if display:
                self.job_manager.add_log(batch_id, display)
