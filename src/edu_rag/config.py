from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError


def _project_root() -> Path:
    """
    Resolve project root assuming this file lives in: <root>/src/edu_rag/config.py
    """
    return Path(__file__).resolve().parents[2]


class Settings(BaseModel):
    # --- Credentials ---
    # Empty is allowed here; the orchestrator rejects queries until a key is configured.
    gemini_api_key: str = Field(default="", description="Gemini API key")

    # --- Generation service ---
    gemini_model: str = Field(default="gemini-2.5-flash")
    gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta/openai/")
    request_timeout_s: float = Field(default=60.0, gt=0)

    # --- Retrieval ---
    similarity_threshold: float = Field(default=0.275, ge=0.0, lt=1.0)
    top_k: int = Field(default=3, ge=1)

    # --- Retries ---
    expansion_max_attempts: int = Field(default=3, ge=1)
    summary_max_attempts: int = Field(default=5, ge=1)
    backoff_base_s: float = Field(default=1.0, ge=0.0)
    backoff_jitter_s: float = Field(default=1.0, ge=0.0)
    max_backoff_s: float = Field(default=60.0, ge=0.0)

    summary_max_chars: int = Field(default=25_000, ge=1)

    repair_strategy: Literal["first_document", "full_scan"] = "first_document"

    store_path: Path = Field(default_factory=lambda: _project_root() / "data" / "knowledge_base.jsonl")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @property
    def has_credentials(self) -> bool:
        return bool(self.gemini_api_key.strip())


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Loads environment variables (optionally from .env) and validates Settings.

    IMPORTANT:
    - Do NOT hardcode secrets here.
    - Only fill variables in .env.
    """
    if env_file is None:
        env_file = _project_root() / ".env"

    # Load .env if present; environment variables override .env by default
    if env_file.exists():
        load_dotenv(env_file, override=False)

    defaults = Settings()

    # Map environment variables -> Settings fields
    data = {
        "gemini_api_key": os.getenv("GEMINI_API_KEY", ""),
        "gemini_model": os.getenv("GEMINI_MODEL", defaults.gemini_model),
        "gemini_base_url": os.getenv("GEMINI_BASE_URL", defaults.gemini_base_url),
        "request_timeout_s": os.getenv("REQUEST_TIMEOUT_S", defaults.request_timeout_s),
        "similarity_threshold": os.getenv("SIMILARITY_THRESHOLD", defaults.similarity_threshold),
        "top_k": os.getenv("TOP_K", defaults.top_k),
        "expansion_max_attempts": os.getenv("EXPANSION_MAX_ATTEMPTS", defaults.expansion_max_attempts),
        "summary_max_attempts": os.getenv("SUMMARY_MAX_ATTEMPTS", defaults.summary_max_attempts),
        "backoff_base_s": os.getenv("BACKOFF_BASE_S", defaults.backoff_base_s),
        "backoff_jitter_s": os.getenv("BACKOFF_JITTER_S", defaults.backoff_jitter_s),
        "max_backoff_s": os.getenv("MAX_BACKOFF_S", defaults.max_backoff_s),
        "summary_max_chars": os.getenv("SUMMARY_MAX_CHARS", defaults.summary_max_chars),
        "repair_strategy": os.getenv("REPAIR_STRATEGY", defaults.repair_strategy),
        "store_path": os.getenv("STORE_PATH", str(defaults.store_path)),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }

    try:
        return Settings(**data)
    except ValidationError as e:
        raise RuntimeError(
            "Invalid configuration. Check the environment variables listed below.\n"
            f"Details:\n{e}"
        ) from e


# Convenience singleton-style access
settings = load_settings()
