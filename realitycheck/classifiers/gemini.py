"""
Gemini Classifier — sentiment labels from the Google Gemini API.

The google.genai client is created in load(), so a missing API key
surfaces as "classifier not ready" and the engine keeps running on its
rule-based detectors.

Call path per text:
  1. Circuit breaker check (fail fast while the API keeps erroring)
  2. Configured model, retried with exponential backoff on transient errors
  3. FALLBACK_MODEL once, if the configured model gave up
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from typing import Callable, Optional

from google import genai
from google.genai import types

from realitycheck.classifiers import ClassifierProvider

logger = logging.getLogger("realitycheck.classifiers.gemini")

FALLBACK_MODEL = "gemini-2.5-flash"

BREAKER_THRESHOLD = 3       # consecutive failed classifications
BREAKER_COOLDOWN_S = 60.0   # open → half-open after this long

_TRANSIENT_MARKERS = (
    "429", "500", "503", "rate", "quota", "timeout",
    "connection", "unavailable", "overloaded",
)

CLASSIFY_PROMPT = """Classify the overall sentiment of the text below.

Return ONLY a JSON object with:
- "label": "POSITIVE" or "NEGATIVE"
- "score": your confidence in that label, a float from 0.0 to 1.0

## Text
{text}"""


def is_transient(error: Exception) -> bool:
    """Rate limits, overloads and network blips are worth a retry."""
    message = str(error).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


# ============================================================
# CIRCUIT BREAKER
# ============================================================

class CircuitBreaker:
    """Counts consecutive failures; opens at the threshold.

    States: closed, open, half-open. An open breaker turns half-open once
    the cooldown has elapsed; the next success closes it, the next
    failure reopens it.
    """

    def __init__(
        self,
        failure_threshold: int = BREAKER_THRESHOLD,
        recovery_timeout: float = BREAKER_COOLDOWN_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._consecutive = 0
        self._opened_at: Optional[float] = None

    @property
    def failures(self) -> int:
        return self._consecutive

    @property
    def state(self) -> str:
        if self._opened_at is None:
            return "closed"
        if self._clock() - self._opened_at >= self.recovery_timeout:
            return "half-open"
        return "open"

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    def record_success(self) -> None:
        self._consecutive = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._consecutive += 1
        if self._consecutive >= self.failure_threshold:
            if self.state != "open":
                logger.warning(
                    "Gemini circuit breaker opened after %d failures, "
                    "skipping calls for %.0fs",
                    self._consecutive, self.recovery_timeout,
                )
            self._opened_at = self._clock()


class CircuitOpenError(Exception):
    """The breaker is open; no request was sent."""


def parse_label_json(text: str) -> dict:
    """Parse a {"label", "score"} object, tolerating ```json fences."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[-1].rsplit("```", 1)[0].strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Classifier returned invalid JSON: {e}. Raw response: {text[:300]}"
        ) from e
    if not isinstance(data, dict):
        raise ValueError(f"Classifier returned non-object JSON: {text[:300]}")
    return {
        "label": str(data.get("label", "")).upper(),
        "score": float(data.get("score", 0.0)),
    }


# ============================================================
# PROVIDER
# ============================================================

class GeminiClassifier(ClassifierProvider):
    """Google Gemini sentiment provider with fallback and circuit breaker."""

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        super().__init__()
        self.api_key = api_key or os.getenv("GEMINI_API_KEY", "")
        self.model = model or os.getenv("GEMINI_MODEL", FALLBACK_MODEL)
        self.circuit_breaker = CircuitBreaker()
        self._client: Optional[genai.Client] = None
        self._config = types.GenerateContentConfig(
            temperature=0.0,
            response_mime_type="application/json",
        )

    async def _load(self) -> None:
        if not self.api_key:
            raise RuntimeError(
                "GEMINI_API_KEY is not set; create a key at "
                "https://aistudio.google.com/apikey"
            )
        self._client = genai.Client(api_key=self.api_key)

    def _model_chain(self) -> list[tuple[str, int]]:
        """(model, attempts) pairs to try in order."""
        if self.model == FALLBACK_MODEL:
            return [(self.model, 2)]
        return [(self.model, 2), (FALLBACK_MODEL, 1)]

    async def _generate(self, model: str, prompt: str, attempts: int) -> str:
        for attempt in range(attempts):
            try:
                response = await self._client.aio.models.generate_content(
                    model=model, contents=prompt, config=self._config,
                )
                return response.text
            except Exception as e:
                if attempt + 1 >= attempts or not is_transient(e):
                    raise
                delay = 2 ** attempt
                logger.debug("Transient Gemini error on %s, retrying in %ss", model, delay)
                await asyncio.sleep(delay)
        raise RuntimeError("no attempts configured")

    async def classify(self, text: str) -> dict:
        if self._client is None:
            raise RuntimeError("GeminiClassifier.classify() called before load()")
        if self.circuit_breaker.is_open:
            raise CircuitOpenError("Gemini circuit breaker is open")

        prompt = CLASSIFY_PROMPT.format(text=text)
        errors: list[Exception] = []
        for model, attempts in self._model_chain():
            try:
                raw = await self._generate(model, prompt, attempts)
            except Exception as e:
                logger.warning(
                    "Gemini model %s failed", model,
                    extra={"provider": self.name, "error": str(e),
                           "error_type": type(e).__name__},
                )
                errors.append(e)
                continue
            self.circuit_breaker.record_success()
            return parse_label_json(raw)

        self.circuit_breaker.record_failure()
        raise errors[-1] from (errors[0] if len(errors) > 1 else None)
