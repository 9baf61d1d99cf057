# Copyright (c) US Inc. All rights reserved.
"""Document upload and fine-tuning endpoints"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from ...core.exceptions import TuneforgeError
from ...models.schemas import BatchRequest, BatchStatus, DocumentInfo
from ...services.document_service import DocumentService
from ...services.job_manager import job_manager
from ...services.job_orchestrator import JobOrchestrator
from ..deps import CurrentUser, get_current_user, get_document_service, get_orchestrator, http_error

logger = logging.getLogger(__name__)

router = APIRouter()

_BATCH_STATUS_CODES = {
    BatchStatus.COMPLETED: 200,
    BatchStatus.REJECTED: 400,
    BatchStatus.VALIDATION_FAILED: 400,
    BatchStatus.FAILED: 500,
}


@router.post("/upload")
async def upload_document(
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    content = await file.read()
    try:
        document = service.upload(file.filename, content, user.id, user.name)
    except TuneforgeError as e:
        raise http_error(e)
    return {
        "success": True,
        "message": "Uploaded",
        "data": DocumentInfo.model_validate(document).model_dump(mode="json"),
    }


@router.post("/fine-tune")
async def fine_tune(
    request: BatchRequest,
    user: CurrentUser = Depends(get_current_user),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Validate and train a batch of the caller's uploaded documents."""
    result = await orchestrator.run_batch(request.document_ids, user.id)
    return JSONResponse(
        status_code=_BATCH_STATUS_CODES[result.status],
        content=result.model_dump(mode="json"),
    )


@router.get("/batches/{batch_id}/logs")
async def get_batch_logs(batch_id: str, last_n: int = 100, user: CurrentUser = Depends(get_current_user)):
    if job_manager.log_owner(batch_id) != user.id:
        raise HTTPException(status_code=404, detail={"error": "Batch not found", "error_code": "BATCH_NOT_FOUND"})
    return {"batch_id": batch_id, "logs": job_manager.get_logs(batch_id, last_n)}


@router.get("")
async def list_documents(
    user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    docs: List[DocumentInfo] = [DocumentInfo.model_validate(d) for d in service.list_documents(user.id)]
    return {"success": True, "data": [d.model_dump(mode="json") for d in docs]}


@router.get("/{document_id}")
async def get_document(
    document_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    try:
        document = service.get_document(document_id, user.id)
    except TuneforgeError as e:
        raise http_error(e)
    return {"success": True, "data": DocumentInfo.model_validate(document).model_dump(mode="json")}


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    try:
        service.delete_document(document_id, user.id)
    except TuneforgeError as e:
        raise http_error(e)
    return {"success": True}
