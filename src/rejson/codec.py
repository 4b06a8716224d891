"""Canonical JSON text encoding for document values."""

import json
from typing import Any

from rejson.errors import ParseError


def encode(value: Any) -> str:
    """Serialize a document value to its compact canonical text.

    NaN and infinities have no JSON form and raise ValueError.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def decode(text: str | bytes | None) -> Any:
    """Parse canonical text back into a document value.

    A nil reply (missing key or path) decodes to ``None``.
    """
    if text is None:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Malformed JSON reply: {text!r}") from exc
