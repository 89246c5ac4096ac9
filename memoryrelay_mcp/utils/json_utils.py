"""
JSON utilities for rendering tool results.
"""

import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any


def _encode(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f'Object of type {type(value).__name__} is not JSON serializable')


def to_json_text(value: Any) -> str:
    """Render a result as pretty-printed JSON text.

    Args:
        value: Plain JSON data, model objects exposing ``to_dict()``, or lists of them

    Returns:
        JSON string indented by two spaces
    """
    return json.dumps(value, indent=2, default=_encode, ensure_ascii=False)
