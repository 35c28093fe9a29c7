"""
Classifier Provider — Abstract Interface

The sentiment classifier is an external collaborator: model loading can
fail or take a long time. Every provider goes through this interface so
the rest of the engine only ever sees "ready", "loading" or a
`{"label", "score"}` result. Swap providers with REALITYCHECK_CLASSIFIER.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger("realitycheck.classifiers")


class ClassifierProvider(ABC):
    """Abstract base for sentiment classifier providers."""

    name: str = "base"

    def __init__(self):
        self._ready = False
        self._loading = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_loading(self) -> bool:
        return self._loading

    async def load(self) -> bool:
        """
        Load the underlying model. Safe to call repeatedly.

        Never raises: a failed load leaves the provider not ready and is
        logged. Returns the readiness after the attempt.
        """
        if self._ready or self._loading:
            return self._ready

        self._loading = True
        try:
            logger.info("Loading sentiment classifier", extra={"provider": self.name})
            await self._load()
            self._ready = True
            logger.info("Sentiment classifier ready", extra={"provider": self.name})
        except Exception as e:
            self._ready = False
            logger.error(
                "Failed to load sentiment classifier",
                extra={"provider": self.name, "error": str(e),
                       "error_type": type(e).__name__},
            )
        finally:
            self._loading = False
        return self._ready

    @abstractmethod
    async def _load(self) -> None:
        """Provider-specific model or client setup."""
        ...

    @abstractmethod
    async def classify(self, text: str) -> dict:
        """Classify text. Returns {"label": "POSITIVE"|"NEGATIVE"|..., "score": float}."""
        ...

    async def classify_batch(self, texts: list[str]) -> list[dict]:
        """Classify several texts. Order matches the input."""
        return list(await asyncio.gather(*[self.classify(t) for t in texts]))
