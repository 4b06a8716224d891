"""Argument and reply marshaling shared by the facade methods."""

from typing import Any, Iterable, Sequence

from rejson.codec import decode, encode


def serialize_elements(prefix: Sequence[Any], elements: Iterable[Any]) -> list[Any]:
    """Build a wire argument list from fixed arguments and document values.

    ``prefix`` (key, path, index, ...) is passed through untouched; each of
    ``elements`` is encoded on its own and appended in the caller's order.
    """
    return [*prefix, *(encode(element) for element in elements)]


def parse_each(replies: Iterable[Any] | None) -> list[Any]:
    """Decode every element of a multi-reply independently."""
    if replies is None:
        return []
    return [decode(reply) for reply in replies]


def to_deleted(reply: Any) -> bool:
    return reply == 1


def to_number(reply: Any) -> float:
    # Counters come back as JSON text, e.g. "15" or "1.5e3".
    if isinstance(reply, bytes):
        reply = reply.decode("utf-8")
    return float(reply)
