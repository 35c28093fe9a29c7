"""
Classifier Provider factory.
"""

from typing import Optional

from realitycheck.classifiers import ClassifierProvider
from realitycheck.config import settings


def get_classifier(provider_name: str = "local") -> Optional[ClassifierProvider]:
    """Factory — returns the configured classifier, or None when disabled."""
    if provider_name == "none":
        return None
    if provider_name == "gemini":
        from realitycheck.classifiers.gemini import GeminiClassifier
        return GeminiClassifier(
            api_key=settings.GEMINI_API_KEY or None,
            model=settings.GEMINI_MODEL,
        )
    if provider_name == "local":
        from realitycheck.classifiers.local import LocalClassifier
        return LocalClassifier(model=settings.LOCAL_MODEL)
    raise ValueError(f"Unknown classifier provider: {provider_name}")
