# Copyright (c) US Inc. All rights reserved.
"""Generation history endpoints"""

from fastapi import APIRouter, Depends

from ...core.exceptions import TuneforgeError
from ...models.schemas import GenerationLogInfo
from ...services.generation_log_service import GenerationLogService
from ..deps import CurrentUser, get_current_user, get_generation_log_service, http_error

router = APIRouter()


@router.get("")
async def list_logs(
    limit: int = 50,
    offset: int = 0,
    user: CurrentUser = Depends(get_current_user),
    service: GenerationLogService = Depends(get_generation_log_service),
):
    logs = service.list_logs(user.id, limit=limit, offset=offset)
    return {
        "success": True,
        "data": [GenerationLogInfo.model_validate(log).model_dump(mode="json") for log in logs],
        "pagination": {"limit": limit, "offset": offset, "count": len(logs)},
    }


@router.get("/stats")
async def log_stats(
    user: CurrentUser = Depends(get_current_user),
    service: GenerationLogService = Depends(get_generation_log_service),
):
    return {"success": True, "data": service.stats(user.id).model_dump()}


@router.get("/{log_id}")
async def get_log(
    log_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: GenerationLogService = Depends(get_generation_log_service),
):
    try:
        log = service.get_log(log_id, user.id)
    except TuneforgeError as e:
        raise http_error(e)
    return {"success": True, "data": GenerationLogInfo.model_validate(log).model_dump(mode="json")}
