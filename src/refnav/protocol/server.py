"""Sequential JSON-RPC loop exposing a :class:`QueryHandler` to an editor.

One message is read, fully handled, and answered before the next is read.
Failures are scoped to the message that caused them: requests receive an
error response and notifications are logged and dropped.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Dict, Mapping, Optional

from refnav.analysis import QueryHandler, UnknownDocumentError
from refnav.buffer import Position, TextBufferError, TextEdit
from refnav.runtime import telemetry

from .framing import MessageReader, write_message

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
REQUEST_FAILED = -32803


class JsonRpcError(Exception):
    """Error that maps onto a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_json(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True, slots=True)
class ServerInfo:
    name: str
    version: str

    def to_json(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version}


def _text_document_uri(params: Mapping[str, Any]) -> str:
    return str(params["textDocument"]["uri"])


def _position(params: Mapping[str, Any]) -> Position:
    return Position.from_json(params["position"])


class LanguageServer:
    """Reads requests from ``reader`` and writes responses to ``writer``."""

    def __init__(
        self,
        reader: BinaryIO,
        writer: BinaryIO,
        handler: QueryHandler,
        *,
        server_info: ServerInfo,
        logger_name: str | None = None,
    ) -> None:
        self._reader = MessageReader(reader)
        self._writer = writer
        self.handler = handler
        self.server_info = server_info
        self._logger_name = logger_name
        self.logger = telemetry.get_logger(logger_name)
        self.running = False
        self.shutdown_requested = False
        self._methods: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "initialize": self._initialize,
            "initialized": self._ignore,
            "shutdown": self._shutdown,
            "exit": self._exit,
            "textDocument/didOpen": self._did_open,
            "textDocument/didClose": self._did_close,
            "textDocument/didChange": self._did_change,
            "textDocument/definition": self._definition,
            "textDocument/references": self._references,
        }

    def run(self) -> None:
        """Serve until ``shutdown``/``exit`` or the end of the input stream."""

        self.running = True
        self.logger.info("LSP server started")
        for payload in self._reader:
            response = self.handle_payload(payload)
            if response is not None:
                write_message(self._writer, response)
            if not self.running:
                self.logger.info("LSP server shutting down")
                return
        self.running = False
        self.logger.info("LSP input closed")

    def handle_payload(self, payload: bytes) -> Optional[dict[str, Any]]:
        try:
            message = json.loads(payload.decode("utf-8"))
        except ValueError as exc:
            return self._error_response(None, JsonRpcError(PARSE_ERROR, str(exc)))
        return self.handle_message(message)

    def handle_message(self, message: Any) -> Optional[dict[str, Any]]:
        """Dispatch one decoded message; returns the response for requests."""

        if not isinstance(message, dict):
            return self._error_response(
                None, JsonRpcError(INVALID_REQUEST, "message must be an object")
            )

        request_id = message.get("id")
        is_request = "id" in message
        if message.get("jsonrpc") != JSONRPC_VERSION:
            return self._error_response(
                request_id, JsonRpcError(INVALID_REQUEST, "unknown jsonrpc version")
            )
        method = message.get("method")
        if not isinstance(method, str) or not method:
            return self._error_response(
                request_id, JsonRpcError(INVALID_REQUEST, "request is missing a method")
            )

        with telemetry.span(
            f"server::{method}",
            logger_name=self._logger_name,
            component="protocol",
        ) as handle:
            try:
                result = self._dispatch(method, message.get("params") or {}, is_request)
            except JsonRpcError as exc:
                handle.add_metadata("error", exc.code)
                if not is_request:
                    self._notification_failed(method, exc)
                    return None
                return self._error_response(request_id, exc)

        if not is_request:
            return None
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}

    def _dispatch(self, method: str, params: Any, is_request: bool) -> Any:
        target = self._methods.get(method)
        if target is None:
            if is_request:
                raise JsonRpcError(METHOD_NOT_FOUND, f"method not found: {method}")
            self.logger.warning(f"Ignoring notification with unknown method {method!r}")
            return None
        if not isinstance(params, Mapping):
            raise JsonRpcError(INVALID_PARAMS, f"invalid {method} params")

        try:
            return target(params)
        except UnknownDocumentError as exc:
            raise JsonRpcError(REQUEST_FAILED, str(exc)) from exc
        except TextBufferError as exc:
            raise JsonRpcError(INVALID_PARAMS, str(exc)) from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise JsonRpcError(
                INVALID_PARAMS, f"invalid {method} params: {exc}"
            ) from exc

    def _notification_failed(self, method: str, exc: JsonRpcError) -> None:
        telemetry.record_event(
            "server.notification_failed",
            level="warning",
            data={"method": method, "code": exc.code, "reason": exc.message},
            logger_name=self._logger_name,
        )

    @staticmethod
    def _error_response(request_id: Any, error: JsonRpcError) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error.to_json()}

    def _initialize(self, params: Mapping[str, Any]) -> dict[str, Any]:
        client = params.get("clientInfo") or {}
        if not isinstance(client, Mapping):
            raise TypeError("clientInfo must be an object")
        telemetry.record_event(
            "server.initialize",
            data={
                "client": client.get("name", "unknown"),
                "client_version": client.get("version", ""),
            },
            logger_name=self._logger_name,
        )
        return {
            "capabilities": self.handler.capabilities(),
            "serverInfo": self.server_info.to_json(),
        }

    def _ignore(self, params: Mapping[str, Any]) -> None:
        del params

    def _shutdown(self, params: Mapping[str, Any]) -> None:
        del params
        self.shutdown_requested = True
        self.running = False

    def _exit(self, params: Mapping[str, Any]) -> None:
        del params
        self.running = False

    def _did_open(self, params: Mapping[str, Any]) -> None:
        document = params["textDocument"]
        self.handler.open(str(document["uri"]), str(document["text"]))

    def _did_close(self, params: Mapping[str, Any]) -> None:
        self.handler.close(_text_document_uri(params))

    def _did_change(self, params: Mapping[str, Any]) -> None:
        edits = [TextEdit.from_json(change) for change in params["contentChanges"]]
        self.handler.change(_text_document_uri(params), edits)

    def _definition(self, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        locations = self.handler.definition(_text_document_uri(params), _position(params))
        return [location.to_json() for location in locations]

    def _references(self, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        locations = self.handler.references(_text_document_uri(params), _position(params))
        return [location.to_json() for location in locations]


__all__ = [
    "JsonRpcError",
    "LanguageServer",
    "ServerInfo",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "REQUEST_FAILED",
]
