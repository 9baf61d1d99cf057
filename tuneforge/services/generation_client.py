# Copyright (c) US Inc. All rights reserved.
"""Client for the generative text model (OpenAI-compatible chat completions)"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import ConfigurationError, GenerationError

logger = logging.getLogger(__name__)


@dataclass
class Completion:
    text: str
    model: Optional[str] = None
    tokens_used: int = 0


class GenerationClient(ABC):
    """Given a prompt, returns text. May fail, may return malformed content."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        ...


class OpenAICompatibleClient(GenerationClient):

    def __init__(
        self,
        api_key: str,
        api_base: str = "https://api.openai.com/v1",
        default_model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ConfigurationError(
                "No API key configured for the generative model",
                user_message="Please configure the model API key first",
            )
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.default_model = default_model
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "OpenAICompatibleClient":
        return cls(
            api_key=settings.LLM_API_KEY or "",
            api_base=settings.LLM_API_BASE,
            default_model=settings.LLM_MODEL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload: Dict[str, Any] = {
            "model": model or self.default_model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(f"{self.api_base}/chat/completions", json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise GenerationError(f"Model request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Model request failed: {e}") from e

        if resp.status_code == 429:
            raise GenerationError("Model quota or rate limit exceeded", error_code="GENERATION_QUOTA")
        if resp.status_code != 200:
            raise GenerationError(f"Model returned status {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise GenerationError("Model returned a non-JSON response") from e

        choices = data.get("choices") or []
        text = ""
        if choices:
            text = (choices[0].get("message") or {}).get("content") or ""
        usage = data.get("usage") or {}
        logger.debug("Completion received: model=%s tokens=%s", data.get("model"), usage.get("total_tokens"))
        return Completion(
            text=text,
            model=data.get("model") or payload["model"],
            tokens_used=int(usage.get("total_tokens") or 0),
        )
