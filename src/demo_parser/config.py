import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .buffer import MIN_ALLOCATION

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    log_file: Optional[str] = None
    strict_magic: bool = False
    min_buffer_bytes: int = MIN_ALLOCATION


def load_settings() -> Settings:
    """Read settings from the environment, after pulling in a .env file if present."""
    load_dotenv()

    min_buffer = os.getenv("DEMO_MIN_BUFFER_BYTES", str(MIN_ALLOCATION))
    try:
        min_buffer_bytes = int(min_buffer)
    except ValueError:
        raise ValueError(f"DEMO_MIN_BUFFER_BYTES must be an integer, got {min_buffer!r}") from None
    if min_buffer_bytes <= 0:
        raise ValueError("DEMO_MIN_BUFFER_BYTES must be positive")

    log_level = os.getenv("DEMO_LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"DEMO_LOG_LEVEL must be a logging level name, got {log_level!r}")

    return Settings(
        log_level=log_level,
        log_file=os.getenv("DEMO_LOG_FILE") or None,
        strict_magic=os.getenv("DEMO_STRICT_MAGIC", "false").strip().lower() in _TRUTHY,
        min_buffer_bytes=min_buffer_bytes,
    )
