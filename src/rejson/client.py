"""JSON document commands on top of a generic command transport."""

from __future__ import annotations

from typing import Any, Mapping

from rejson import commands
from rejson.binder import BoundCommand, CommandTransport, bind_commands
from rejson.codec import decode, encode
from rejson.config import ConnectionConfig
from rejson.contracts import StatusReply
from rejson.errors import ProtocolError
from rejson.marshal import parse_each, serialize_elements, to_deleted, to_number
from rejson.transport import RespConnection, get_default_connection

ROOT_PATH = "."


class JsonClient:
    """Async client for the JSON command family.

    Every command of :data:`rejson.commands.COMMANDS` is bound onto the given
    transport when the client is created. When no transport is given, a
    :class:`~rejson.transport.RespConnection` is built from ``config`` (or
    from the environment) and opened on first use.
    """

    def __init__(
        self,
        transport: CommandTransport | None = None,
        config: ConnectionConfig | None = None,
    ) -> None:
        if transport is None:
            transport = (
                RespConnection.from_config(config) if config is not None else get_default_connection()
            )
        self.transport = transport
        self._commands: Mapping[str, BoundCommand] = bind_commands(transport)

    def command(self, name: str) -> BoundCommand:
        """Return the text and binary invokers bound for ``name``."""
        return self._commands[name]

    async def _call(self, descriptor: commands.CommandDescriptor, *args: Any) -> Any:
        return await self._commands[descriptor.name].as_text(*args)

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "JsonClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── Documents ────────────────────────────────────────

    async def set(self, key: str, path: str, value: Any) -> bool:
        """Set the JSON value at ``path`` in ``key``.

        Returns True once the store acknowledges the write. Any other reply
        raises :class:`~rejson.errors.ProtocolError` carrying that reply.
        """
        raw = await self._call(commands.SET, key, path, encode(value))
        status = StatusReply.from_raw(raw)
        if not status.ok:
            raise ProtocolError(status.raw)
        return True

    async def get(self, key: str, path: str = ROOT_PATH) -> Any:
        """Get the JSON value at ``path``, or None if the key does not exist."""
        return decode(await self._call(commands.GET, key, path))

    async def mget(self, *keys: str, path: str) -> list[Any]:
        """Get the value at ``path`` from several keys.

        ``path`` is keyword-only so it cannot be mistaken for a key. The
        result lines up with ``keys``; missing keys give None. Raises
        ValueError when no key is given.
        """
        if not keys:
            raise ValueError("mget requires at least one key")
        return parse_each(await self._call(commands.MGET, *keys, path))

    async def delete(self, key: str, path: str = ROOT_PATH) -> bool:
        """Delete the value at ``path``. Returns True if something was removed."""
        return to_deleted(await self._call(commands.DEL, key, path))

    async def forget(self, key: str, path: str = ROOT_PATH) -> bool:
        """Alias of :meth:`delete` using ``JSON.FORGET``."""
        return to_deleted(await self._call(commands.FORGET, key, path))

    async def type(self, key: str, path: str = ROOT_PATH) -> str | None:
        """Return the JSON type name of the value at ``path``."""
        return await self._call(commands.TYPE, key, path)

    # ── Numbers ──────────────────────────────────────────

    async def num_incr_by(self, key: str, path: str, number: int | float) -> float:
        """Increment the number at ``path`` by ``number`` and return the new value.

        The store rejects the command when the target is not a number.
        """
        return to_number(await self._call(commands.NUMINCRBY, key, path, number))

    async def num_mult_by(self, key: str, path: str, number: int | float) -> float:
        """Multiply the number at ``path`` by ``number`` and return the new value."""
        return to_number(await self._call(commands.NUMMULTBY, key, path, number))

    # ── Strings ──────────────────────────────────────────

    async def str_append(self, key: str, path: str, string: str) -> Any:
        """Append ``string`` to the string at ``path``; returns the new length."""
        return await self._call(commands.STRAPPEND, key, path, encode(string))

    async def str_len(self, key: str, path: str = ROOT_PATH) -> int | None:
        return await self._call(commands.STRLEN, key, path)

    # ── Arrays ───────────────────────────────────────────

    async def arr_append(self, key: str, path: str, *elements: Any) -> int:
        """Append ``elements`` after the last element of the array at ``path``.

        Each element is encoded separately and sent as its own argument.
        Returns the new size of the array. Raises ValueError when no element
        is given.
        """
        if not elements:
            raise ValueError("arr_append requires at least one element")
        return await self._call(commands.ARRAPPEND, *serialize_elements((key, path), elements))

    async def arr_index(self, key: str, path: str, scalar: Any) -> int:
        """Position of the first occurrence of ``scalar`` in the array, or -1."""
        return await self._call(commands.ARRINDEX, key, path, encode(scalar))

    async def arr_insert(self, key: str, path: str, index: int, *elements: Any) -> int:
        """Insert ``elements`` before ``index`` in the array at ``path``.

        Returns the new size of the array. Raises ValueError when no element
        is given.
        """
        if not elements:
            raise ValueError("arr_insert requires at least one element")
        return await self._call(
            commands.ARRINSERT, *serialize_elements((key, path, index), elements)
        )

    async def arr_len(self, key: str, path: str = ROOT_PATH) -> int | None:
        return await self._call(commands.ARRLEN, key, path)

    async def arr_pop(self, key: str, path: str = ROOT_PATH, index: int = -1) -> Any:
        """Remove and return the element at ``index`` (the last one by default)."""
        return decode(await self._call(commands.ARRPOP, key, path, index))

    async def arr_trim(self, key: str, path: str, start: int, stop: int) -> int:
        """Trim the array to the inclusive range ``[start, stop]``.

        Out-of-range indexes are accepted by the store. Returns the new size.
        """
        return await self._call(commands.ARRTRIM, key, path, start, stop)

    # ── Objects ──────────────────────────────────────────

    async def obj_keys(self, key: str, path: str = ROOT_PATH) -> list[str] | None:
        return await self._call(commands.OBJKEYS, key, path)

    async def obj_len(self, key: str, path: str = ROOT_PATH) -> int | None:
        return await self._call(commands.OBJLEN, key, path)

    # ── Introspection ────────────────────────────────────

    async def debug_memory(self, key: str, path: str = ROOT_PATH) -> int:
        """Memory used by the value at ``path``, in bytes."""
        return await self._commands[commands.DEBUG.name].as_text("MEMORY", key, path)

    async def resp(self, key: str, path: str = ROOT_PATH) -> Any:
        """Return the value at ``path`` in the store's nested RESP form."""
        return await self._call(commands.RESP, key, path)
