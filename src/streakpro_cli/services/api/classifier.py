"""AI verification classifier client."""

from __future__ import annotations

import asyncio
import json
import os
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from streakpro_cli.models import VerificationResult
from streakpro_cli.models.config_models import ClassifierConfig
from streakpro_cli.models.exceptions import ClassifierUnavailable
from streakpro_cli.utils.logger import get_logger

logger = get_logger("classifier")

SYSTEM_PROMPT = (
    "You are an expert AI verification system. ALWAYS return ONLY valid JSON, nothing else."
)

_ESCAPE_RE = re.compile(r"[`\\${}]")


def escape_description(description: str) -> str:
    """Backslash-escape characters that could break out of the quoted prompt."""
    return _ESCAPE_RE.sub(lambda m: "\\" + m.group(0), str(description))


def build_prompt(description: str, has_photo: bool) -> str:
    """Build the user prompt sent to the classifier."""
    photo_info = "Photo provided" if has_photo else "No photo provided"
    return f"""You are an AI activity verification system. Analyze the following session:
Description: "{escape_description(description)}"
Photo: "{photo_info}"

Determine:
1) Does the photo appear authentic (if provided)?
2) Does it match the description?
3) Confidence score (0-1)
4) Reasoning

Return STRICT valid JSON ONLY (no other text) with fields:
{{
  "authentic": boolean,
  "matches_description": boolean,
  "confidence": number (0-1),
  "verified": boolean,
  "reasoning": string
}}"""


class Classifier(ABC):
    """Base class for verification classifiers."""

    @abstractmethod
    async def classify(self, description: str, photo: str | None = None) -> VerificationResult:
        """Return a verdict for a session description and optional photo reference.

        Raises:
            ClassifierUnavailable: If no verdict could be obtained
        """


class OpenAIClassifier(Classifier):
    """Classifier backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        config: ClassifierConfig | None = None,
        *,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ClassifierConfig()
        self.api_key = api_key if api_key is not None else os.environ.get(self.config.api_key_env)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> OpenAIClassifier:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.endpoint,
                timeout=self.config.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        client = self._get_client()
        retry = self.config.retry
        last_exception: Exception | None = None
        for attempt in range(retry + 1):
            try:
                response = await client.post("/chat/completions", json=payload)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                # Don't retry client errors (4xx)
                if 400 <= e.response.status_code < 500:
                    raise
                last_exception = e
            except httpx.RequestError as e:
                last_exception = e

            if attempt < retry:
                logger.warning("classifier call failed (attempt %s): %s", attempt + 1, last_exception)
                await asyncio.sleep(2**attempt)

        if last_exception:
            raise last_exception
        raise RuntimeError("Request failed after all retries")

    async def classify(self, description: str, photo: str | None = None) -> VerificationResult:
        if not self.api_key:
            raise ClassifierUnavailable(
                f"Classifier API key missing (set {self.config.api_key_env})"
            )

        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(description, photo is not None)},
            ],
            "temperature": self.config.temperature,
        }
        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            logger.error("classifier request failed: %s", e)
            raise ClassifierUnavailable(f"Classifier request failed: {e}") from e

        try:
            text = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ClassifierUnavailable("No response from classifier") from e
        if not text:
            raise ClassifierUnavailable("No response from classifier")

        try:
            return VerificationResult.model_validate(json.loads(text))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.error("unparsable classifier reply: %r", text)
            raise ClassifierUnavailable("Invalid response format from classifier") from e
