"""Asyncio RESP connection used as the default command transport."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from functools import partial
from typing import Any, Deque, Tuple

from rejson.binder import BoundCommand
from rejson.config import ConnectionConfig, get_connection_config
from rejson.errors import ParseError, ReplyError, TransportError
from rejson.transport.resp import decode_reply, pack_command, read_reply

logger = logging.getLogger("rejson.transport")


class RespConnection:
    """Single connection to a RESP store with FIFO reply matching.

    Concurrent callers share the connection: each request queues a future,
    writes its frame, and the receive task resolves futures in order.
    """

    def __init__(
        self,
        host: str,
        port: int,
        db: int = 0,
        password: str | None = None,
        connect_timeout_s: float = 5.0,
        request_timeout_s: float = 10.0,
        max_retries: int = 2,
        reconnect_interval_s: float = 0.5,
        auto_reconnect: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self.connect_timeout_s = connect_timeout_s
        self.request_timeout_s = request_timeout_s
        self.max_retries = max_retries
        self.reconnect_interval_s = reconnect_interval_s
        self.auto_reconnect = auto_reconnect

        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._receiver_task: asyncio.Task[Any] | None = None
        # Set once AUTH and SELECT have been acknowledged.
        self._ready = False
        self._pending: Deque[Tuple[asyncio.Future[Any], bool]] = deque()
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> "RespConnection":
        return cls(
            host=config.host,
            port=config.port,
            db=config.db,
            password=config.password,
            connect_timeout_s=config.connect_timeout_s,
            request_timeout_s=config.request_timeout_s,
            max_retries=config.max_retries,
            reconnect_interval_s=config.reconnect_interval_s,
            auto_reconnect=config.auto_reconnect,
        )

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def connected(self) -> bool:
        return self._ready

    def register_command(self, name: str) -> BoundCommand:
        """Expose ``name`` as text and binary invokers bound to this connection."""
        if not name or any(ch.isspace() for ch in name):
            raise ValueError(f"Cannot register malformed command name: {name!r}")
        return BoundCommand(
            name=name,
            as_text=partial(self.execute_command, name),
            as_binary=partial(self.execute_command, name, decode=False),
        )

    async def connect(self) -> None:
        async with self._lock:
            if self._ready:
                return
            attempts = self.max_retries + 1 if self.auto_reconnect else 1
            last_error: Exception | None = None
            for attempt in range(1, attempts + 1):
                try:
                    await self._open()
                    return
                except ReplyError:
                    await self._teardown(TransportError("Connection closed"))
                    raise
                except (OSError, asyncio.TimeoutError, TransportError) as exc:
                    last_error = exc
                    await self._teardown(TransportError("Connection closed"))
                    if attempt >= attempts:
                        break
                    logger.debug("Connect attempt %d to %s failed: %s", attempt, self.address, exc)
                    await asyncio.sleep(self.reconnect_interval_s)

            assert last_error is not None
            raise TransportError(f"connect to {self.address} failed: {last_error}") from last_error

    async def _open(self) -> None:
        self._reader, self._writer = await asyncio.wait_for(
            asyncio.open_connection(self.host, self.port),
            timeout=self.connect_timeout_s,
        )
        self._receiver_task = asyncio.create_task(self._receive_loop(self._reader))
        if self.password is not None:
            await self._dispatch(("AUTH", self.password), decode=True)
        if self.db:
            await self._dispatch(("SELECT", self.db), decode=True)
        self._ready = True
        logger.info("Connected to store at %s (db=%d)", self.address, self.db)

    async def close(self) -> None:
        async with self._lock:
            was_connected = self._writer is not None
            await self._teardown(TransportError("Connection closed"))
        if was_connected:
            logger.info("Closed connection to %s", self.address)

    async def _teardown(self, exc: Exception) -> None:
        receiver_task = self._receiver_task
        writer = self._writer
        self._ready = False
        self._receiver_task = None
        self._reader = None
        self._writer = None

        if receiver_task is not None and receiver_task is not asyncio.current_task():
            receiver_task.cancel()
            try:
                await receiver_task
            except asyncio.CancelledError:
                pass

        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (OSError, ConnectionError) as close_exc:
                logger.debug("Ignoring error while closing %s: %s", self.address, close_exc)

        self._fail_pending(exc)

    def _fail_pending(self, exc: Exception) -> None:
        pending = list(self._pending)
        self._pending.clear()
        for future, _ in pending:
            if not future.done():
                future.set_exception(exc)

    async def _receive_loop(self, reader: asyncio.StreamReader) -> None:
        cancelled = False
        try:
            while True:
                reply = await read_reply(reader)
                if not self._pending:
                    logger.warning("Dropping unsolicited reply from %s", self.address)
                    continue
                future, decode = self._pending.popleft()
                if future.done():
                    continue
                if isinstance(reply, ReplyError):
                    future.set_exception(reply)
                    continue
                try:
                    future.set_result(decode_reply(reply) if decode else reply)
                except UnicodeDecodeError as exc:
                    error = ParseError(f"Reply is not valid UTF-8: {exc}")
                    error.__cause__ = exc
                    future.set_exception(error)
        except asyncio.CancelledError:
            # Whoever cancelled the loop fails the pending requests.
            cancelled = True
            raise
        except (asyncio.IncompleteReadError, asyncio.LimitOverrunError, OSError, ValueError) as exc:
            logger.warning("Receive loop for %s stopped: %s", self.address, exc)
        finally:
            if self._reader is reader:
                self._ready = False
                self._receiver_task = None
                writer = self._writer
                self._reader = None
                self._writer = None
                if writer is not None:
                    writer.close()
            if not cancelled:
                self._fail_pending(TransportError("Connection lost"))

    async def _dispatch(self, args: Tuple[Any, ...], decode: bool) -> Any:
        writer = self._writer
        if writer is None:
            raise TransportError(f"Not connected to {self.address}")

        frame = pack_command(*args)
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        # Queue and write without yielding so frames and futures stay in order.
        self._pending.append((future, decode))
        writer.write(frame)

        try:
            await writer.drain()
            return await asyncio.wait_for(future, timeout=self.request_timeout_s)
        except asyncio.TimeoutError as exc:
            # Later replies can no longer be matched; drop the connection.
            await self._teardown(TransportError("Connection dropped after timeout"))
            raise TransportError(
                f"{args[0]} timed out after {self.request_timeout_s:.1f}s"
            ) from exc
        except TransportError:
            raise
        except OSError as exc:
            await self._teardown(TransportError("Connection lost"))
            raise TransportError(f"{args[0]} failed: {exc}") from exc

    async def execute_command(self, name: str, *args: Any, decode: bool = True) -> Any:
        """Send one command and return its raw reply.

        With ``decode`` the reply's byte strings are returned as ``str``;
        otherwise they stay ``bytes``.
        """
        if not self.connected:
            await self.connect()
        logger.debug("%s %s", name, args[:1])
        return await self._dispatch((name, *args), decode=decode)

    async def __aenter__(self) -> "RespConnection":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


def get_default_connection() -> RespConnection:
    """Return a connection configured from the environment (not yet opened)."""
    return RespConnection.from_config(get_connection_config())
