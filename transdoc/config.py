"""
Runtime configuration loaded from the environment (and an optional .env file).
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_MODEL = "gemini-2.0-flash-lite"
DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

ENGINES = ("gemini", "ondevice")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application settings"""
    gemini_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    engine: str = "gemini"
    strict_formulas: bool = False
    placeholder_translation: bool = False
    max_upload_mb: int = 20
    job_ttl_seconds: int = 3600
    allowed_origins: List[str] = field(
        default_factory=lambda: DEFAULT_ORIGINS.split(','))
    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        env_file: Path of a .env file to load first (default: search from the working directory)

    Returns:
        Populated Settings instance
    """
    # Load environment variables FIRST
    if env_file:
        load_dotenv(Path(env_file))
    else:
        load_dotenv()

    engine = os.environ.get('TRANSDOC_ENGINE', 'gemini').strip().lower()
    if engine not in ENGINES:
        raise ValueError(f"TRANSDOC_ENGINE must be one of {', '.join(ENGINES)}, got {engine!r}")

    return Settings(
        gemini_api_key=os.environ.get('GEMINI_API_KEY') or None,
        model=os.environ.get('TRANSDOC_MODEL', DEFAULT_MODEL),
        engine=engine,
        strict_formulas=_env_flag('TRANSDOC_STRICT_FORMULAS'),
        placeholder_translation=_env_flag('TRANSDOC_PLACEHOLDER_TRANSLATION'),
        max_upload_mb=int(os.environ.get('TRANSDOC_MAX_UPLOAD_MB', '20')),
        job_ttl_seconds=int(os.environ.get('TRANSDOC_JOB_TTL', '3600')),
        allowed_origins=[
            origin.strip()
            for origin in os.environ.get('ALLOWED_ORIGINS', DEFAULT_ORIGINS).split(',')
            if origin.strip()
        ],
        log_level=os.environ.get('TRANSDOC_LOG_LEVEL', 'INFO').upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging and quiet the chatty client libraries."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    logging.getLogger('google_genai').setLevel(logging.ERROR)
    logging.getLogger('httpx').setLevel(logging.ERROR)
