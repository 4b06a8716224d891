"""Static table of the JSON commands bound onto every client."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_COMMAND_NAME = re.compile(r"^[A-Z][A-Z0-9]*\.[A-Z][A-Z0-9]*$")


class CommandDescriptor(BaseModel):
    """Identifies one wire command of the JSON module."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Wire command name, e.g. JSON.SET")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not _COMMAND_NAME.match(value):
            raise ValueError(f"malformed command name: {value!r}")
        return value


DEL = CommandDescriptor(name="JSON.DEL")
GET = CommandDescriptor(name="JSON.GET")
MGET = CommandDescriptor(name="JSON.MGET")
SET = CommandDescriptor(name="JSON.SET")
TYPE = CommandDescriptor(name="JSON.TYPE")
NUMINCRBY = CommandDescriptor(name="JSON.NUMINCRBY")
NUMMULTBY = CommandDescriptor(name="JSON.NUMMULTBY")
STRAPPEND = CommandDescriptor(name="JSON.STRAPPEND")
STRLEN = CommandDescriptor(name="JSON.STRLEN")
ARRAPPEND = CommandDescriptor(name="JSON.ARRAPPEND")
ARRINDEX = CommandDescriptor(name="JSON.ARRINDEX")
ARRINSERT = CommandDescriptor(name="JSON.ARRINSERT")
ARRLEN = CommandDescriptor(name="JSON.ARRLEN")
ARRPOP = CommandDescriptor(name="JSON.ARRPOP")
ARRTRIM = CommandDescriptor(name="JSON.ARRTRIM")
OBJKEYS = CommandDescriptor(name="JSON.OBJKEYS")
OBJLEN = CommandDescriptor(name="JSON.OBJLEN")
DEBUG = CommandDescriptor(name="JSON.DEBUG")
FORGET = CommandDescriptor(name="JSON.FORGET")
RESP = CommandDescriptor(name="JSON.RESP")

# Binding iterates in this order.
COMMANDS: tuple[CommandDescriptor, ...] = (
    DEL,
    GET,
    MGET,
    SET,
    TYPE,
    NUMINCRBY,
    NUMMULTBY,
    STRAPPEND,
    STRLEN,
    ARRAPPEND,
    ARRINDEX,
    ARRINSERT,
    ARRLEN,
    ARRPOP,
    ARRTRIM,
    OBJKEYS,
    OBJLEN,
    DEBUG,
    FORGET,
    RESP,
)

COMMAND_NAMES: tuple[str, ...] = tuple(command.name for command in COMMANDS)
