"""
Shared fixtures: fake classifier providers and a controllable clock.

No test touches the network or downloads a model.
"""

from __future__ import annotations

import asyncio

import pytest

from realitycheck.classifiers import ClassifierProvider


class FakeClassifier(ClassifierProvider):
    """Returns a fixed {label, score} result and records every call."""

    name = "fake"

    def __init__(self, label: str = "NEGATIVE", score: float = 0.8):
        super().__init__()
        self.label = label
        self.score = score
        self.calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    async def _load(self) -> None:
        return None

    async def classify(self, text: str) -> dict:
        self.calls.append(text)
        return {"label": self.label, "score": self.score}

    async def classify_batch(self, texts: list[str]) -> list[dict]:
        self.batch_calls.append(list(texts))
        return await super().classify_batch(texts)


class BrokenLoadClassifier(FakeClassifier):
    """Model load fails outright."""

    name = "broken-load"

    async def _load(self) -> None:
        raise RuntimeError("model weights not found")


class HangingClassifier(FakeClassifier):
    """Model load never completes."""

    name = "hanging"

    async def _load(self) -> None:
        await asyncio.Event().wait()


class FailingClassifier(FakeClassifier):
    """Loads fine, then errors on every classification."""

    name = "failing"

    async def classify(self, text: str) -> dict:
        self.calls.append(text)
        raise ConnectionError("inference backend unavailable")


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest.fixture
def classifier_types():
    return {
        "fake": FakeClassifier,
        "broken_load": BrokenLoadClassifier,
        "hanging": HangingClassifier,
        "failing": FailingClassifier,
    }


@pytest.fixture
def clock():
    return FakeClock()
