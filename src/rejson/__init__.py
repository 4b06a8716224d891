"""Async client for the JSON document commands of a Redis-protocol store."""

from rejson.binder import BoundCommand, CommandTransport, bind_commands
from rejson.client import JsonClient
from rejson.commands import COMMAND_NAMES, COMMANDS, CommandDescriptor
from rejson.config import ConnectionConfig, get_connection_config
from rejson.errors import ParseError, ProtocolError, RejsonError, ReplyError, TransportError
from rejson.transport import RespConnection

__version__ = "0.3.0"

__all__ = [
    "JsonClient",
    "RespConnection",
    "BoundCommand",
    "CommandTransport",
    "bind_commands",
    "CommandDescriptor",
    "COMMANDS",
    "COMMAND_NAMES",
    "ConnectionConfig",
    "get_connection_config",
    "RejsonError",
    "TransportError",
    "ReplyError",
    "ProtocolError",
    "ParseError",
]
