"""RESP2 frame packing and reply parsing."""

from __future__ import annotations

import asyncio
from typing import Any

from rejson.errors import ReplyError

CRLF = b"\r\n"


def encode_arg(arg: Any) -> bytes:
    """Convert one command argument to its bulk-string payload."""
    if isinstance(arg, bytes):
        return arg
    if isinstance(arg, str):
        return arg.encode("utf-8")
    # bool is an int subclass but has no wire form
    if isinstance(arg, bool) or arg is None:
        raise TypeError(f"Invalid command argument: {arg!r}")
    if isinstance(arg, int):
        return str(arg).encode("ascii")
    if isinstance(arg, float):
        return repr(arg).encode("ascii")
    raise TypeError(f"Invalid command argument type: {type(arg).__name__}")


def pack_command(*args: Any) -> bytes:
    """Pack a command and its arguments as a RESP array of bulk strings."""
    parts = [b"*%d\r\n" % len(args)]
    for arg in args:
        payload = encode_arg(arg)
        parts.append(b"$%d\r\n" % len(payload))
        parts.append(payload)
        parts.append(CRLF)
    return b"".join(parts)


async def _read_line(reader: asyncio.StreamReader) -> bytes:
    line = await reader.readuntil(CRLF)
    return line[:-2]


async def read_reply(reader: asyncio.StreamReader) -> Any:
    """Read one complete reply.

    Strings come back as ``bytes``. Error replies are returned (not raised)
    as :class:`ReplyError` instances so the caller can route them to the
    request they belong to.
    """
    line = await _read_line(reader)
    if not line:
        raise ValueError("Empty reply line")

    prefix, data = line[:1], line[1:]
    if prefix == b"+":
        return data
    if prefix == b"-":
        return ReplyError(data.decode("utf-8", errors="replace"))
    if prefix == b":":
        return int(data)
    if prefix == b"$":
        length = int(data)
        if length == -1:
            return None
        payload = await reader.readexactly(length + 2)
        return payload[:-2]
    if prefix == b"*":
        count = int(data)
        if count == -1:
            return None
        return [await read_reply(reader) for _ in range(count)]
    raise ValueError(f"Unknown reply type: {prefix!r}")


def decode_reply(reply: Any, encoding: str = "utf-8") -> Any:
    """Recursively turn byte strings of a reply into text."""
    if isinstance(reply, bytes):
        return reply.decode(encoding)
    if isinstance(reply, list):
        return [decode_reply(item, encoding) for item in reply]
    return reply
