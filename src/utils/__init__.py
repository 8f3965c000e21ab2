"""Utility modules for Gonçalinho.

- **errors** -- Domain exception hierarchy rooted at GoncalinhoError;
  each pipeline stage raises its own subclass so callers can handle
  failures granularly without broad ``except Exception`` blocks.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **text_decoding** -- UTF-8 decoding with a Latin-1 fallback for the
  government exports that arrive in legacy encodings.
"""

from src.utils.errors import (
    ConfigurationError,
    ExtractionError,
    GoncalinhoError,
    LLMError,
    ProcessingError,
    StoreError,
    StoreWriteError,
    UnsupportedFormatError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.text_decoding import decode_with_fallback

__all__ = [
    "ConfigurationError",
    "ExtractionError",
    "GoncalinhoError",
    "LLMError",
    "ProcessingError",
    "StoreError",
    "StoreWriteError",
    "UnsupportedFormatError",
    "configure_logging",
    "decode_with_fallback",
    "get_logger",
]
