"""Process settings and debug-panel protocol constants.

Settings come from environment variables (after python-dotenv has read
.env). Everything has a default so a bare checkout starts against the
Gemini endpoint with an empty key and a ./data directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

ProviderFormat = Literal["gemini", "openai", "koboldcpp", "echo"]

DEFAULT_DATA_DIR = Path("data")


class DebugLabels(BaseModel):
    """Literal strings of the debug panel protocol.

    Each extracted field accepts a tuple of label alternatives; matching is
    case-insensitive and runs on NFC-normalised text.
    """

    marker: str = "--- DEBUG PANEL ---"
    separator: str = "-------------------"
    none_sentinel: str = "None"
    integrity: tuple[str, ...] = ("Ṛta Integrity Score", "Rta Integrity Score")
    level: tuple[str, ...] = ("Active Level",)
    contradictions: tuple[str, ...] = ("Active Contradictions",)


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    provider_url: str = "https://generativelanguage.googleapis.com"
    provider_format: ProviderFormat = "gemini"
    api_key: str = ""
    model: str = "gemini-3-pro-preview"
    temperature: float = 1.0
    timeout: float = 120.0
    history_window: int = Field(default=10, ge=0)
    clamp_ranges: bool = True
    log_level: str = "INFO"
    labels: DebugLabels = Field(default_factory=DebugLabels)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables, ignoring unset ones."""
        env = {
            "data_dir": os.getenv("DATA_DIR"),
            "provider_url": os.getenv("LLM_PROVIDER_URL"),
            "provider_format": os.getenv("LLM_PROVIDER_FORMAT"),
            "api_key": os.getenv("LLM_API_KEY") or os.getenv("API_KEY"),
            "model": os.getenv("LLM_MODEL"),
            "temperature": os.getenv("LLM_TEMPERATURE"),
            "timeout": os.getenv("LLM_TIMEOUT"),
            "history_window": os.getenv("HISTORY_WINDOW"),
            "clamp_ranges": os.getenv("CLAMP_RANGES"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        return cls.model_validate({k: v for k, v in env.items() if v is not None})
