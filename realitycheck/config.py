"""
Reality Check Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Sentiment classifier ---
    CLASSIFIER: str = os.getenv("REALITYCHECK_CLASSIFIER", "local")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    LOCAL_MODEL: str = os.getenv(
        "REALITYCHECK_LOCAL_MODEL",
        "distilbert-base-uncased-finetuned-sst-2-english",
    )

    # --- Pipeline initialization (bounded readiness polling) ---
    INIT_ATTEMPTS: int = int(os.getenv("REALITYCHECK_INIT_ATTEMPTS", "30"))
    INIT_INTERVAL: float = float(os.getenv("REALITYCHECK_INIT_INTERVAL", "1.0"))

    # --- Sentiment input bounds ---
    MAX_TEXT_LENGTH: int = int(os.getenv("REALITYCHECK_MAX_TEXT_LENGTH", "512"))
    CACHE_TTL: int = int(os.getenv("REALITYCHECK_CACHE_TTL", "3600"))

    # --- Fusion ---
    SCROLL_WEIGHT: float = float(os.getenv("REALITYCHECK_SCROLL_WEIGHT", "0.2"))

    # --- Server ---
    HOST: str = os.getenv("REALITYCHECK_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("REALITYCHECK_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("REALITYCHECK_CORS_ORIGINS", "*")


settings = Settings()
