"""Editor protocol host: message framing and request dispatch."""

from .framing import FramingError, MessageReader, encode_message, write_message
from .server import JsonRpcError, LanguageServer, ServerInfo

__all__ = [
    "FramingError",
    "JsonRpcError",
    "LanguageServer",
    "MessageReader",
    "ServerInfo",
    "encode_message",
    "write_message",
]
