"""
Secret redaction for error messages and log output.
"""

import re
from typing import Optional

MASK_MARKER = '***'
VISIBLE_PREFIX_LENGTH = 8

# Heuristic patterns for scrub(). These only catch text shaped like a MemoryRelay
# key or a source location; anything else passes through untouched.
_API_KEY_PATTERN = re.compile(r'mem_[A-Za-z0-9_-]+')
_FILE_PATH_PATTERN = re.compile(r'(?:[A-Za-z]:)?[\\/][A-Za-z0-9_\-./\\]+\.(?:pyc?|json|ts|js)\b')
_PY_FRAME_PATTERN = re.compile(r'File "[^"]+", line \d+')
_JS_FRAME_PATTERN = re.compile(r'at\s+\S+\s+\([^)]+\)')


def redact(text: str, secret: Optional[str]) -> str:
    """Replace every occurrence of a known secret with a truncated placeholder.

    Args:
        text: Text that may contain the secret
        secret: The literal secret value; if empty or None the text is returned unchanged

    Returns:
        Text with each case-sensitive occurrence of ``secret`` replaced by its first
        eight characters followed by ``***``
    """
    if not secret or not text:
        return text
    return text.replace(secret, secret[:VISIBLE_PREFIX_LENGTH] + MASK_MARKER)


def scrub(text: str) -> str:
    """Best-effort removal of key-shaped substrings and internal locations from free text.

    Used at the logging layer where the literal key may not be in scope. This is a
    heuristic, not a security boundary: secrets that do not look like ``mem_...``
    are not caught. Prefer ``redact()`` wherever the key value is available.

    Args:
        text: Raw text

    Returns:
        Text with API keys masked as ``mem_****``, file paths as ``<file>`` and
        stack-frame locations as ``<location>``
    """
    if not text:
        return text
    text = _API_KEY_PATTERN.sub('mem_****', text)
    text = _PY_FRAME_PATTERN.sub('File <location>', text)
    text = _JS_FRAME_PATTERN.sub('at <location>', text)
    text = _FILE_PATH_PATTERN.sub('<file>', text)
    return text
