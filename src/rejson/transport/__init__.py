"""Default RESP transport."""

from rejson.transport.connection import RespConnection, get_default_connection
from rejson.transport.resp import decode_reply, pack_command, read_reply

__all__ = ["RespConnection", "get_default_connection", "pack_command", "read_reply", "decode_reply"]
