"""
Local input validation applied before any request leaves the process.
"""

import re

from .errors import ValidationError

MAX_CONTENT_SIZE = 50 * 1024  # characters

_UUID_PATTERN = re.compile(r'[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}')

_HTML_ESCAPES = (
    ('&', '&amp;'),  # must run first
    ('<', '&lt;'),
    ('>', '&gt;'),
    ('"', '&quot;'),
    ("'", '&#x27;'),
    ('/', '&#x2F;'),
)


def is_valid_uuid(value) -> bool:
    """Check that a value is a UUID in hyphenated 8-4-4-4-12 form (any case)."""
    return isinstance(value, str) and _UUID_PATTERN.fullmatch(value) is not None


def validate_uuid(value, field_name: str = 'id') -> str:
    """Validate a UUID used as a path or link identifier.

    Args:
        value: Candidate identifier
        field_name: Name used in the error message

    Returns:
        The value unchanged

    Raises:
        ValidationError: If the value is not a hyphenated UUID
    """
    if not is_valid_uuid(value):
        raise ValidationError(f'Invalid {field_name}: must be a valid UUID')
    return value


def validate_content_size(content: str, field_name: str = 'Content') -> str:
    """Enforce the payload size ceiling.

    The limit counts characters (code points), not encoded bytes.

    Raises:
        ValidationError: If the content is longer than MAX_CONTENT_SIZE
    """
    if len(content) > MAX_CONTENT_SIZE:
        raise ValidationError(f'{field_name} exceeds maximum size of {MAX_CONTENT_SIZE} characters')
    return content


def sanitize_html(text: str) -> str:
    """HTML-encode a string so it is inert if rendered by a downstream UI."""
    for char, entity in _HTML_ESCAPES:
        text = text.replace(char, entity)
    return text
