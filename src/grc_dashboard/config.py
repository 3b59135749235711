"""
Runtime configuration for the GRC dashboard.

Values come from the environment; a local ``.env`` file is loaded first so
developers can keep their OpenAI key out of the shell profile.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_STORAGE_PATH = "grc_data.json"
DEFAULT_ANALYSIS_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class Settings:
    storage_path: str = DEFAULT_STORAGE_PATH
    openai_api_key: Optional[str] = None
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    log_level: int = logging.INFO
    log_file: Optional[str] = None


def _parse_level(raw: Optional[str]) -> int:
    if not raw:
        return logging.INFO
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def load_settings(use_dotenv: bool = True) -> Settings:
    """Build a Settings object from environment variables."""
    if use_dotenv:
        load_dotenv()
    return Settings(
        storage_path=os.getenv("GRC_STORAGE_PATH", DEFAULT_STORAGE_PATH),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        analysis_model=os.getenv("GRC_ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL),
        log_level=_parse_level(os.getenv("GRC_LOG_LEVEL")),
        log_file=os.getenv("GRC_LOG_FILE") or None,
    )
