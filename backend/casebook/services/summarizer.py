"""Client for the external text-generation service (Google Gemini REST API)."""

from __future__ import annotations

import json
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from casebook.core.config import settings
from casebook.core.errors import SummarizerError
from casebook.models.ai_report import AIReport
from casebook.models.case import Case
from casebook.services.prompts import build_analysis_prompt, build_final_report_prompt


class Summarizer(Protocol):
    async def analyze(self, case: Case) -> AIReport: ...

    async def compose_final_report(self, case: Case) -> str: ...


def _strip_fences(text: str) -> str:
    s = text.strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[1] if "\n" in s else ""
        if s.rstrip().endswith("```"):
            s = s.rstrip()[:-3]
    return s.strip()


def parse_report(text: str) -> AIReport:
    try:
        data = json.loads(_strip_fences(text))
    except ValueError as e:
        raise SummarizerError("Summarization service returned non-JSON content") from e
    if not isinstance(data, dict):
        raise SummarizerError("Summarization service returned an unexpected JSON shape")
    try:
        return AIReport.model_validate(data)
    except ValidationError as e:
        raise SummarizerError("Summarization service returned an invalid report") from e


class GeminiSummarizer:
    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "GeminiSummarizer":
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.ai_timeout_seconds,
        )

    async def _generate(self, prompt: str, json_mode: bool = False) -> str:
        if not self.api_key:
            raise SummarizerError("API key is missing. Set GEMINI_API_KEY in .env")

        body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if json_mode:
            body["generationConfig"] = {"responseMimeType": "application/json"}

        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(url, json=body, headers={"x-goog-api-key": self.api_key})
        except httpx.TimeoutException as e:
            raise SummarizerError(f"Summarization service timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise SummarizerError(f"Summarization service unreachable: {e}") from e

        if r.status_code >= 400:
            raise SummarizerError(f"Summarization service returned HTTP {r.status_code}")

        try:
            parts = r.json()["candidates"][0]["content"]["parts"]
            text = "".join(p.get("text", "") for p in parts)
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise SummarizerError("Unexpected response from summarization service") from e

        if not text.strip():
            raise SummarizerError("Summarization service returned no content")
        return text

    async def analyze(self, case: Case) -> AIReport:
        text = await self._generate(build_analysis_prompt(case), json_mode=True)
        return parse_report(text)

    async def compose_final_report(self, case: Case) -> str:
        return await self._generate(build_final_report_prompt(case))
