"""Binds the command table onto a transport.

Each command is registered once per client, yielding a text invoker and a
binary-safe invoker. The resulting mapping is read-only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, Mapping, Protocol

from rejson.commands import COMMANDS, CommandDescriptor

logger = logging.getLogger("rejson.binder")

Invoker = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class BoundCommand:
    """Text and binary invokers for one wire command."""

    name: str
    as_text: Invoker
    as_binary: Invoker


class CommandTransport(Protocol):
    """Anything able to expose a wire command as a pair of invokers."""

    def register_command(self, name: str) -> BoundCommand: ...


def bind_commands(
    transport: CommandTransport,
    commands: Iterable[CommandDescriptor] = COMMANDS,
) -> Mapping[str, BoundCommand]:
    """Register every command on ``transport`` and return name -> pair.

    Registration errors propagate unchanged, so a caller never receives a
    partially bound mapping.
    """
    bound: dict[str, BoundCommand] = {}
    for command in commands:
        if command.name in bound:
            raise ValueError(f"Duplicate command in table: {command.name}")
        bound[command.name] = transport.register_command(command.name)
    logger.debug("Bound %d commands on %s", len(bound), type(transport).__name__)
    return MappingProxyType(bound)
