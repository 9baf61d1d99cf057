# Copyright (c) US Inc. All rights reserved.
"""Playground endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...core.exceptions import TuneforgeError
from ...models.schemas import CompetencyRequest, FeedbackInfo, FeedbackRequest, FeedbackType, NormalizationRequest
from ...services.competency_service import CompetencyService
from ...services.feedback_service import FeedbackService
from ...services.output_normalizer import normalize_generated_records
from ..deps import CurrentUser, get_competency_service, get_current_user, get_feedback_service, http_error

router = APIRouter()


def _parse_failure(error: str, raw_sample: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "error": "Failed to parse AI response as competency list",
            "message": error,
            "rawSample": raw_sample,
        },
    )


@router.post("/competency")
async def generate_competencies(
    request: CompetencyRequest,
    user: CurrentUser = Depends(get_current_user),
    service: CompetencyService = Depends(get_competency_service),
):
    try:
        result = await service.generate(request.input_text, user.id)
    except TuneforgeError as e:
        raise http_error(e)

    if not result.success:
        return _parse_failure(result.error, result.raw_sample)

    return {
        "success": True,
        "data": {"competencies": result.competencies},
        "metadata": {
            "model": result.model,
            "tokens": result.tokens,
            "responseTime": result.response_time_ms,
            "count": result.count,
            "usedFineTune": result.used_fine_tune,
        },
    }


@router.post("/normalize")
async def normalize(request: NormalizationRequest, user: CurrentUser = Depends(get_current_user)):
    """Normalize a raw model response without calling the model."""
    result = normalize_generated_records(request.raw_text)
    if not result.success:
        return _parse_failure(result.error, result.raw_sample)
    return {"success": True, "data": {"competencies": result.records}, "count": len(result.records)}


@router.post("/feedback")
async def submit_feedback(
    request: FeedbackRequest,
    user: CurrentUser = Depends(get_current_user),
    service: FeedbackService = Depends(get_feedback_service),
):
    feedback = service.submit(request, user.id, user.name)
    return {
        "success": True,
        "message": "Feedback submitted successfully",
        "data": FeedbackInfo.model_validate(feedback).model_dump(mode="json"),
    }


@router.get("/feedback")
async def list_feedback(
    limit: int = 50,
    feedback_type: Optional[FeedbackType] = None,
    user: CurrentUser = Depends(get_current_user),
    service: FeedbackService = Depends(get_feedback_service),
):
    items, stats = service.list_feedback(user.id, feedback_type=feedback_type, limit=min(max(limit, 1), 200))
    return {
        "success": True,
        "data": [FeedbackInfo.model_validate(f).model_dump(mode="json") for f in items],
        "stats": stats,
    }
