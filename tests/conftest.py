"""Shared fixtures: an in-memory JSON store speaking RESP, and a recording transport."""

import asyncio
import json
from typing import Any

import pytest

from rejson.binder import BoundCommand


# ── Mock store ───────────────────────────────────────────


class StoreError(Exception):
    pass


def _split_path(path: str) -> list[str]:
    path = path.strip()
    if path in (".", "$", ""):
        return []
    if path.startswith("$"):
        path = path[1:]
    return [part for part in path.split(".") if part]


class JsonStore:
    """Just enough of the JSON module for the client tests."""

    def __init__(self) -> None:
        self.docs: dict[str, Any] = {}
        self.log: list[list[str]] = []

    def _locate(self, key: str, path: str) -> tuple[Any, Any]:
        if key not in self.docs:
            raise StoreError("ERR could not perform this operation on a key that doesn't exist")
        parts = _split_path(path)
        if not parts:
            return None, None
        node = self.docs[key]
        for part in parts[:-1]:
            node = node[part]
        if not isinstance(node, dict) or parts[-1] not in node:
            raise StoreError(f"ERR Path '{path}' does not exist")
        return node, parts[-1]

    def _read(self, key: str, path: str) -> Any:
        parent, field = self._locate(key, path)
        return self.docs[key] if parent is None else parent[field]

    def _write(self, key: str, path: str, value: Any) -> None:
        parent, field = self._locate(key, path)
        if parent is None:
            self.docs[key] = value
        else:
            parent[field] = value

    def _typed(self, key: str, path: str, kind: type, name: str) -> Any:
        value = self._read(key, path)
        if not isinstance(value, kind) or isinstance(value, bool):
            raise StoreError(f"ERR wrong type of path value - expected {name}")
        return value

    def execute(self, args: list[str]) -> Any:
        self.log.append(args)
        name, rest = args[0].upper(), args[1:]
        handler = getattr(self, "cmd_" + name.replace("JSON.", "json_").lower(), None)
        if handler is None:
            raise StoreError(f"ERR unknown command '{args[0]}'")
        try:
            return handler(*rest)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise StoreError(f"ERR {exc}") from exc

    def cmd_ping(self) -> Any:
        return ("status", "PONG")

    def cmd_json_set(self, key: str, path: str, value: str) -> Any:
        parsed = json.loads(value)
        parts = _split_path(path)
        if not parts:
            self.docs[key] = parsed
            return ("status", "OK")
        if key not in self.docs:
            raise StoreError("ERR new objects must be created at the root")
        node = self.docs[key]
        for part in parts[:-1]:
            node = node[part]
        node[parts[-1]] = parsed
        return ("status", "OK")

    def cmd_json_get(self, key: str, path: str = ".") -> Any:
        if key not in self.docs:
            return None
        return json.dumps(self._read(key, path), ensure_ascii=False)

    def cmd_json_mget(self, *args: str) -> Any:
        *keys, path = args
        replies = []
        for key in keys:
            try:
                replies.append(self.cmd_json_get(key, path))
            except StoreError:
                replies.append(None)
        return replies

    def cmd_json_del(self, key: str, path: str = ".") -> Any:
        if key not in self.docs:
            return 0
        parts = _split_path(path)
        if not parts:
            del self.docs[key]
            return 1
        try:
            parent, field = self._locate(key, path)
        except (StoreError, KeyError, TypeError):
            return 0
        del parent[field]
        return 1

    cmd_json_forget = cmd_json_del

    def cmd_json_type(self, key: str, path: str = ".") -> Any:
        if key not in self.docs:
            return None
        value = self._read(key, path)
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, int):
            return "integer"
        if isinstance(value, float):
            return "number"
        if isinstance(value, str):
            return "string"
        if isinstance(value, list):
            return "array"
        return "object"

    def _num_op(self, key: str, path: str, operand: str, op) -> Any:
        current = self._typed(key, path, (int, float), "a number")
        result = op(current, json.loads(operand))
        self._write(key, path, result)
        return json.dumps(result)

    def cmd_json_numincrby(self, key: str, path: str, number: str) -> Any:
        return self._num_op(key, path, number, lambda a, b: a + b)

    def cmd_json_nummultby(self, key: str, path: str, number: str) -> Any:
        return self._num_op(key, path, number, lambda a, b: a * b)

    def cmd_json_strappend(self, key: str, path: str, value: str) -> Any:
        current = self._typed(key, path, str, "a string")
        updated = current + json.loads(value)
        self._write(key, path, updated)
        return len(updated)

    def cmd_json_strlen(self, key: str, path: str = ".") -> Any:
        return len(self._typed(key, path, str, "a string"))

    def cmd_json_arrappend(self, key: str, path: str, *values: str) -> Any:
        array = self._typed(key, path, list, "an array")
        array.extend(json.loads(value) for value in values)
        return len(array)

    def cmd_json_arrindex(self, key: str, path: str, scalar: str) -> Any:
        array = self._typed(key, path, list, "an array")
        wanted = json.loads(scalar)
        for position, item in enumerate(array):
            if item == wanted and type(item) is type(wanted):
                return position
        return -1

    def cmd_json_arrinsert(self, key: str, path: str, index: str, *values: str) -> Any:
        array = self._typed(key, path, list, "an array")
        position = int(index)
        array[position:position] = [json.loads(value) for value in values]
        return len(array)

    def cmd_json_arrlen(self, key: str, path: str = ".") -> Any:
        return len(self._typed(key, path, list, "an array"))

    def cmd_json_arrpop(self, key: str, path: str = ".", index: str = "-1") -> Any:
        array = self._typed(key, path, list, "an array")
        if not array:
            return None
        return json.dumps(array.pop(int(index)))

    def cmd_json_arrtrim(self, key: str, path: str, start: str, stop: str) -> Any:
        array = self._typed(key, path, list, "an array")
        trimmed = array[int(start) : int(stop) + 1]
        array[:] = trimmed
        return len(array)

    def cmd_json_objkeys(self, key: str, path: str = ".") -> Any:
        return list(self._typed(key, path, dict, "an object"))

    def cmd_json_objlen(self, key: str, path: str = ".") -> Any:
        return len(self._typed(key, path, dict, "an object"))

    def cmd_json_debug(self, subcommand: str, key: str, path: str = ".") -> Any:
        if subcommand.upper() != "MEMORY":
            raise StoreError("ERR unknown subcommand")
        return len(json.dumps(self._read(key, path)))

    def cmd_json_resp(self, key: str, path: str = ".") -> Any:
        def to_resp(value: Any) -> Any:
            if isinstance(value, dict):
                out: list[Any] = [("status", "{")]
                for field, item in value.items():
                    out.extend([field, to_resp(item)])
                return out
            if isinstance(value, list):
                return [("status", "[")] + [to_resp(item) for item in value]
            if isinstance(value, bool):
                return ("status", "true" if value else "false")
            if isinstance(value, int):
                return value
            if isinstance(value, float):
                return json.dumps(value)
            return value

        return to_resp(self._read(key, path))


def _encode_reply(reply: Any) -> bytes:
    if reply is None:
        return b"$-1\r\n"
    if isinstance(reply, tuple) and reply[0] == "status":
        return b"+" + reply[1].encode() + b"\r\n"
    if isinstance(reply, int):
        return b":%d\r\n" % reply
    if isinstance(reply, str):
        data = reply.encode("utf-8")
        return b"$%d\r\n%s\r\n" % (len(data), data)
    if isinstance(reply, list):
        return b"*%d\r\n" % len(reply) + b"".join(_encode_reply(item) for item in reply)
    raise TypeError(reply)


async def _read_command(reader: asyncio.StreamReader) -> list[str]:
    header = await reader.readuntil(b"\r\n")
    count = int(header[1:-2])
    args = []
    for _ in range(count):
        length = int((await reader.readuntil(b"\r\n"))[1:-2])
        args.append((await reader.readexactly(length + 2))[:-2].decode("utf-8"))
    return args


class MockServer:
    def __init__(self, store: JsonStore) -> None:
        self.store = store
        self.connections = 0
        self.password: str | None = None

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        try:
            while True:
                args = await _read_command(reader)
                if args[0].upper() == "AUTH":
                    if args[1] == self.password:
                        writer.write(b"+OK\r\n")
                    else:
                        writer.write(b"-WRONGPASS invalid password\r\n")
                elif args[0].upper() == "SELECT":
                    writer.write(b"+OK\r\n")
                else:
                    try:
                        writer.write(_encode_reply(self.store.execute(args)))
                    except StoreError as exc:
                        writer.write(b"-" + str(exc).encode() + b"\r\n")
                await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


@pytest.fixture()
def json_store():
    return JsonStore()


@pytest.fixture()
async def mock_server(json_store):
    """Start a mock JSON store on an ephemeral port."""
    mock = MockServer(json_store)
    server = await asyncio.start_server(mock.handle, "127.0.0.1", 0)
    mock.port = server.sockets[0].getsockname()[1]

    yield mock

    server.close()
    await server.wait_closed()


# ── Recording transport ──────────────────────────────────


class RecordingTransport:
    """Transport double that records frames and replies from a script."""

    def __init__(self, replies: dict[str, Any] | None = None) -> None:
        self.replies = dict(replies or {})
        self.sent: list[tuple[str, tuple[Any, ...], bool]] = []
        self.registered: list[str] = []

    def register_command(self, name: str) -> BoundCommand:
        self.registered.append(name)

        async def as_text(*args: Any) -> Any:
            return self._reply(name, args, True)

        async def as_binary(*args: Any) -> Any:
            return self._reply(name, args, False)

        return BoundCommand(name=name, as_text=as_text, as_binary=as_binary)

    def _reply(self, name: str, args: tuple[Any, ...], decode: bool) -> Any:
        self.sent.append((name, args, decode))
        reply = self.replies.get(name)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def last(self) -> tuple[str, tuple[Any, ...]]:
        name, args, _ = self.sent[-1]
        return name, args


@pytest.fixture()
def recording_transport():
    return RecordingTransport()
