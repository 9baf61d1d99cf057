# Copyright (c) US Inc. All rights reserved.
"""Competency generation through the generative model"""

import logging
import time
from dataclasses import replace
from typing import Optional

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import ConfigurationError, GenerationError
from ..models.db_models import GenerationLog
from ..models.schemas import CompetencyResult, DocumentStatus
from .generation_client import Completion, GenerationClient
from .output_normalizer import COMPETENCY_SCHEMA, OutputNormalizer
from .repository import DocumentRepository, GenerationLogRepository

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are an expert in leadership and FP&A (Financial Planning & Analysis) competencies.
You MUST respond with VALID JSON ONLY, no markdown, no explanations.
If you wrap the array, use one of these keys only: "roles" or "competencies".
""".strip()

USER_PROMPT = """
User Input (context, role, or keywords):
"{input_text}"

Generate EXACTLY {count} distinct competency objects in this JSON format:

[
  {{
    "Name": "Short, specific competency name",
    "Description": "One concise role/competency definition (max 10 words).",
    "Effectively Used": "One concise sentence describing positive, effective behavior (max 14 words).",
    "Under Used": "One concise sentence describing consequences when this competency is underused (max 14 words).",
    "Over Used": "One concise sentence describing consequences when this competency is overused (max 14 words).",
    "Development Actions": "One specific, actionable development step (max 14 words)."
  }}
]

Rules:
- Return either:
  1) A JSON array with {count} objects, OR
  2) A JSON object with ONE key: "roles" or "competencies", whose value is an array of {count} objects.
- Do NOT include any other keys at the top level.
- No comments, no explanations, no trailing text.
""".strip()


class CompetencyService:
    """Asks the model for competencies and normalizes whatever comes back."""

    def __init__(
        self,
        client: Optional[GenerationClient],
        documents: DocumentRepository,
        logs: GenerationLogRepository,
        normalizer: Optional[OutputNormalizer] = None,
        settings: Settings = default_settings,
    ):
        self.client = client
        self.documents = documents
        self.logs = logs
        self.settings = settings
        self.normalizer = normalizer or OutputNormalizer(
            replace(COMPETENCY_SCHEMA, cap=settings.NORMALIZER_CAP), preview_chars=settings.RAW_PREVIEW_CHARS
        )

    async def generate(self, input_text: str, user_id: Optional[str], request_type: str = "playground_test") -> CompetencyResult:
        if not input_text or not input_text.strip():
            raise ValueError("Input text is required")
        if self.client is None:
            raise ConfigurationError(
                "No active AI configuration found",
                user_message="Please configure the model settings first",
            )

        fine_tune_doc = self.documents.latest_with_status([
            DocumentStatus.FINE_TUNING_READY.value,
            DocumentStatus.FINE_TUNING_COMPLETED.value,
        ])
        input_data = {"inputText": input_text.strip()}

        start = time.perf_counter()
        try:
            completion: Completion = await self.client.complete(
                USER_PROMPT.format(input_text=input_text.strip(), count=self.normalizer.schema.cap),
                system=SYSTEM_PROMPT,
                model=self.settings.LLM_MODEL,
                temperature=0.2,
                max_tokens=1200,
            )
        except GenerationError as e:
            self._log(request_type, input_data, None, None, 0, start, user_id, error=str(e))
            raise
        response_time_ms = int((time.perf_counter() - start) * 1000)

        result = self.normalizer.normalize(completion.text)
        metadata = {
            "used_fine_tune": fine_tune_doc is not None,
            "fine_tune_doc_id": fine_tune_doc.id if fine_tune_doc else None,
            "count": len(result.records),
        }
        self._log(
            request_type,
            input_data,
            result.records if result.success else {"rawSample": result.raw_sample},
            completion,
            response_time_ms,
            start,
            user_id,
            error=result.error,
            metadata=metadata,
        )

        return CompetencyResult(
            success=result.success,
            competencies=result.records,
            model=completion.model,
            tokens=completion.tokens_used,
            response_time_ms=response_time_ms,
            count=len(result.records),
            used_fine_tune=metadata["used_fine_tune"],
            fine_tune_doc_id=metadata["fine_tune_doc_id"],
            error=result.error,
            raw_sample=result.raw_sample,
        )

    def _log(self, request_type, input_data, output_data, completion, response_time_ms, start, user_id, error=None, metadata=None):
        if not response_time_ms:
            response_time_ms = int((time.perf_counter() - start) * 1000)
        self.logs.add(GenerationLog(
            request_type=request_type,
            input_data=input_data,
            output_data=output_data,
            model_used=completion.model if completion else self.settings.LLM_MODEL,
            tokens_used=completion.tokens_used if completion else 0,
            response_time_ms=response_time_ms,
            status="error" if error else "success",
            error_message=error,
            user_id=user_id,
            extra=metadata,
        ))
