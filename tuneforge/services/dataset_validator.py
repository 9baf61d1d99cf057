# Copyright (c) US Inc. All rights reserved.
"""Dataset validation and sampling"""

import csv
import io
import json
import logging
from typing import Any, List, Optional

from ..core.config import Settings, settings as default_settings
from ..models.schemas import DatasetAnalysis, DocumentFormat
from .file_source import FileSource, LocalFileSource
from .generation_client import GenerationClient

logger = logging.getLogger(__name__)

CSV_SAMPLE_SIZE = 5
JSON_SAMPLE_SIZE = 30

_PROMPT_SYSTEM = """
You are an expert data engineer. The user will give you sample JSON records.
Your job: create ONE clear, reusable natural-language prompt that instructs a model
how to generate NEW records of the same type, with the same fields, structure,
and style, but different content.

Output ONLY the prompt text. Do not add explanations or examples outside the prompt.
""".strip()

_PROMPT_USER = """
Here are sample JSON records (array):

{samples}

Generate ONE generic prompt a user could paste into an LLM to generate more data
with the same schema, style, and semantics.
""".strip()


class DatasetPromptBuilder:
    """Asks the generative model for a prompt that reproduces a dataset's shape."""

    def __init__(self, client: GenerationClient, model: Optional[str] = None, max_items: int = JSON_SAMPLE_SIZE):
        self.client = client
        self.model = model
        self.max_items = max_items

    async def build(self, sample_items: List[Any]) -> str:
        subset = sample_items[:self.max_items]
        prompt = _PROMPT_USER.format(samples=json.dumps(subset, indent=2, ensure_ascii=False, default=str))
        completion = await self.client.complete(
            prompt,
            system=_PROMPT_SYSTEM,
            model=self.model,
            temperature=0.3,
        )
        return (completion.text or "").strip()


class DatasetValidator:
    """Parses an uploaded dataset, counts and samples it, and judges validity.

    ``validate`` never raises: read and parse failures come back as an
    invalid analysis with the exception message in ``error``.
    """

    def __init__(
        self,
        file_source: Optional[FileSource] = None,
        prompt_builder: Optional[DatasetPromptBuilder] = None,
    ):
        self.file_source = file_source or LocalFileSource()
        self.prompt_builder = prompt_builder

    @classmethod
    def from_settings(
        cls,
        client: Optional[GenerationClient],
        file_source: Optional[FileSource] = None,
        settings: Settings = default_settings,
    ) -> "DatasetValidator":
        builder = DatasetPromptBuilder(client, model=settings.PROMPT_MODEL) if client else None
        return cls(file_source=file_source, prompt_builder=builder)

    async def validate(self, file_path: str, declared_format: str) -> DatasetAnalysis:
        try:
            file_format = DocumentFormat(str(declared_format).lower())
        except ValueError:
            return DatasetAnalysis(error=f"Unsupported format: {declared_format}")

        try:
            text = self.file_source.read(file_path).decode("utf-8-sig")
            if file_format == DocumentFormat.CSV:
                analysis = self._analyze_csv(text)
            else:
                analysis = self._analyze_json(text)
        except Exception as e:
            logger.warning("Dataset %s could not be parsed as %s: %s", file_path, file_format.value, e)
            return DatasetAnalysis(valid=False, error=str(e) or type(e).__name__)

        if (
            file_format == DocumentFormat.JSON
            and analysis.valid
            and analysis.sample_preview
            and self.prompt_builder is not None
        ):
            try:
                analysis.prompt = await self.prompt_builder.build(analysis.sample_preview)
            except Exception as e:
                # prompt synthesis is optional, validity stands
                logger.warning("Prompt generation failed for %s: %s", file_path, e)
                analysis.error = f"Prompt generation failed: {e}"

        return analysis

    def _analyze_csv(self, text: str) -> DatasetAnalysis:
        reader = csv.DictReader(io.StringIO(text))
        rows = [dict(row) for row in reader]
        sample = rows[:CSV_SAMPLE_SIZE]
        return DatasetAnalysis(
            row_count=len(rows),
            sample_records=len(sample),
            valid=len(rows) > 0,
            sample_preview=sample,
        )

    def _analyze_json(self, text: str) -> DatasetAnalysis:
        data = json.loads(text.strip())
        items = data if isinstance(data, list) else [data]
        sample = items[:JSON_SAMPLE_SIZE]
        return DatasetAnalysis(
            row_count=len(items),
            sample_records=len(sample),
            valid=len(items) > 0,
            sample_preview=sample,
        )
