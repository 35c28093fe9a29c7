"""
Local Classifier — on-device transformers sentiment provider.

Runs a DistilBERT SST-2 sentiment pipeline in a worker thread so model
inference never blocks the event loop. Install with the `local` extra.
"""

from __future__ import annotations

import asyncio
import os
from typing import Optional

from realitycheck.classifiers import ClassifierProvider

DEFAULT_MODEL = "distilbert-base-uncased-finetuned-sst-2-english"


class LocalClassifier(ClassifierProvider):
    """transformers `sentiment-analysis` pipeline provider."""

    name = "local"

    def __init__(self, model: Optional[str] = None, device: int = -1):
        super().__init__()
        self._model = model or os.getenv("REALITYCHECK_LOCAL_MODEL", DEFAULT_MODEL)
        self._device = device
        self._pipe = None

    async def _load(self) -> None:
        from transformers import pipeline

        self._pipe = await asyncio.to_thread(
            pipeline, "sentiment-analysis", model=self._model, device=self._device,
        )

    async def classify(self, text: str) -> dict:
        if self._pipe is None:
            raise RuntimeError("Local classifier used before load()")
        result = await asyncio.to_thread(self._pipe, text, truncation=True)
        top = result[0] if isinstance(result, list) else result
        return {"label": str(top["label"]).upper(), "score": float(top["score"])}

    async def classify_batch(self, texts: list[str]) -> list[dict]:
        if self._pipe is None:
            raise RuntimeError("Local classifier used before load()")
        results = await asyncio.to_thread(self._pipe, list(texts), truncation=True)
        return [
            {"label": str(r["label"]).upper(), "score": float(r["score"])}
            for r in results
        ]
