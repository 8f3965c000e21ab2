"""Byte-to-text decoding for uploaded CSV and TXT files.

Brazilian government portals still publish a large share of their exports
in Latin-1 (ISO-8859-1) instead of UTF-8.  Decoding such a file as UTF-8
with ``errors="replace"`` yields U+FFFD replacement characters wherever an
accented byte appears, so the presence of U+FFFD is used as the signal to
re-decode the original bytes as Latin-1.  Latin-1 maps every byte, so the
second decode never fails.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(logger_name=__name__)

_REPLACEMENT_CHAR = "\ufffd"
_BOM = "\ufeff"


def decode_with_fallback(data: bytes) -> str:
    """Decode *data* as UTF-8, falling back to Latin-1 on replacement characters.

    A leading byte-order mark is removed from the result.
    """
    text = data.decode("utf-8", errors="replace")
    if _REPLACEMENT_CHAR in text:
        logger.debug("decode_fallback_latin1", size=len(data))
        text = data.decode("latin-1")
    if text.startswith(_BOM):
        text = text[1:]
    return text
