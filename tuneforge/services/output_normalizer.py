# Copyright (c) US Inc. All rights reserved.
"""Recovery of fixed-shape record lists from generated text"""

import json
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..core.exceptions import ParseError
from ..models.schemas import NormalizationResult

logger = logging.getLogger(__name__)

ExtractionStrategy = Callable[[str], Optional[list]]


@dataclass(frozen=True)
class FieldSpec:
    """Output field and the source keys accepted for it, in priority order."""
    name: str
    aliases: Tuple[str, ...] = ()

    @property
    def source_keys(self) -> Tuple[str, ...]:
        return (self.name,) + tuple(a for a in self.aliases if a != self.name)


@dataclass(frozen=True)
class RecordSchema:
    fields: Tuple[FieldSpec, ...]
    wrapper_keys: Tuple[str, ...] = ()
    cap: int = 10

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]


COMPETENCY_SCHEMA = RecordSchema(
    fields=(
        FieldSpec("Name", ("name",)),
        FieldSpec("Description", ("description",)),
        FieldSpec("Effectively Used", ("effectively_used", "effectivelyUsed")),
        FieldSpec("Under Used", ("underused", "under_used", "underUsed")),
        FieldSpec("Over Used", ("overused", "over_used", "overUsed")),
        FieldSpec("Development Actions", ("development_actions", "developmentActions")),
    ),
    wrapper_keys=("roles", "competencies"),
    cap=10,
)


_DECODE_ERRORS = (TypeError, ValueError, RecursionError)


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except _DECODE_ERRORS:
        return None


def top_level_list(text: str) -> Optional[list]:
    value = _decode(text)
    return value if isinstance(value, list) else None


def wrapped_list(text: str, keys: Sequence[str]) -> Optional[list]:
    value = _decode(text)
    if not isinstance(value, dict):
        return None
    for key in keys:
        if isinstance(value.get(key), list):
            return value[key]
    return None


def first_list_field(text: str) -> Optional[list]:
    value = _decode(text)
    if not isinstance(value, dict):
        return None
    for item in value.values():
        if isinstance(item, list):
            return item
    return None


def default_strategies(schema: RecordSchema) -> List[ExtractionStrategy]:
    return [
        top_level_list,
        partial(wrapped_list, keys=schema.wrapper_keys),
        first_list_field,
    ]


def _describe_failure(text: str) -> str:
    try:
        value = json.loads(text)
    except RecursionError:
        return "Response is not valid JSON: nesting too deep"
    except (TypeError, ValueError) as e:
        return f"Response is not valid JSON: {e}"
    if isinstance(value, dict):
        return "Top-level object does not contain an array"
    return "Response root is neither array nor object"


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class OutputNormalizer:
    """Turns a generated text blob into at most ``schema.cap`` records of the schema's shape.

    Strategies are tried in order and the first list found wins. A missing,
    unparseable or empty list is a ``ParseError``.
    """

    def __init__(
        self,
        schema: RecordSchema = COMPETENCY_SCHEMA,
        strategies: Optional[List[ExtractionStrategy]] = None,
        preview_chars: int = 500,
    ):
        self.schema = schema
        self.strategies = strategies if strategies is not None else default_strategies(schema)
        self.preview_chars = preview_chars

    def extract(self, raw_text: str) -> List[Dict[str, str]]:
        text = (raw_text or "").strip()
        items: Optional[list] = None
        for strategy in self.strategies:
            items = strategy(text)
            if items is not None:
                break

        if items is None:
            raise ParseError(_describe_failure(text))
        if not items:
            raise ParseError("Extracted value is not a non-empty array")

        return [self.project(entry) for entry in items[:self.schema.cap]]

    def project(self, entry: Any) -> Dict[str, str]:
        record: Dict[str, str] = {}
        for spec in self.schema.fields:
            value = ""
            if isinstance(entry, dict):
                for key in spec.source_keys:
                    candidate = entry.get(key)
                    if candidate is not None and candidate != "":
                        value = _stringify(candidate)
                        break
            record[spec.name] = value
        return record

    def normalize(self, raw_text: str) -> NormalizationResult:
        try:
            records = self.extract(raw_text)
        except ParseError as e:
            logger.warning("Failed to parse generated output: %s", e)
            return NormalizationResult(
                records=[],
                error=str(e),
                raw_sample=(raw_text or "")[:self.preview_chars],
            )
        return NormalizationResult(records=records)


_default_normalizer = OutputNormalizer()


def normalize_generated_records(raw_text: str, normalizer: Optional[OutputNormalizer] = None) -> NormalizationResult:
    """Core entry point: records from generated text, or the error and a raw preview."""
    return (normalizer or _default_normalizer).normalize(raw_text)
