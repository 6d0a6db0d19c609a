"""Command-line entry point running the language server over stdio."""

from __future__ import annotations

import argparse
import os
import sys
from contextlib import ExitStack
from typing import BinaryIO, Optional, Sequence, cast

from refnav import __version__
from refnav.analysis import QueryHandler
from refnav.protocol import FramingError, LanguageServer, ServerInfo
from refnav.runtime import telemetry
from refnav.runtime.config import ServerConfig


class _TeeReader:
    """Copies everything read from ``stream`` into ``shadow``."""

    def __init__(self, stream: BinaryIO, shadow: BinaryIO) -> None:
        self._stream = stream
        self._shadow = shadow

    def readline(self, size: int = -1) -> bytes:
        data = self._stream.readline(size)
        self._shadow.write(data)
        return data

    def read(self, size: int = -1) -> bytes:
        data = self._stream.read(size)
        self._shadow.write(data)
        return data


class _TeeWriter:
    """Writes to ``stream`` and mirrors the bytes into ``shadow``."""

    def __init__(self, stream: BinaryIO, shadow: BinaryIO) -> None:
        self._stream = stream
        self._shadow = shadow

    def write(self, data: bytes) -> int:
        written = self._stream.write(data)
        self._shadow.write(data)
        return written

    def flush(self) -> None:
        self._stream.flush()
        self._shadow.flush()


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="refnav",
        description="Serve definition and reference lookups for API description files over stdio.",
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Minimum log level (default: $REFNAV_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write logs to this file (default: $REFNAV_LOG_FILE)",
    )
    parser.add_argument(
        "--log-preset",
        choices=sorted(telemetry.PRESETS),
        default=None,
        help="Use a named telemetry preset instead of the individual log flags",
    )
    parser.add_argument(
        "--testdata",
        default=None,
        help="Capture a copy of all input and output to this directory",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServerConfig:
    return ServerConfig.from_env().override(
        log_level=args.log_level.upper() if args.log_level else None,
        log_file=args.log_file,
        log_preset=args.log_preset,
        testdata_dir=args.testdata,
    )


def serve(
    config: ServerConfig,
    reader: BinaryIO,
    writer: BinaryIO,
) -> int:
    with ExitStack() as stack:
        if config.testdata_dir:
            os.makedirs(config.testdata_dir, exist_ok=True)
            captured_in = stack.enter_context(
                open(os.path.join(config.testdata_dir, "input.jsonrpc"), "wb")
            )
            captured_out = stack.enter_context(
                open(os.path.join(config.testdata_dir, "output.jsonrpc"), "wb")
            )
            reader = cast(BinaryIO, _TeeReader(reader, captured_in))
            writer = cast(BinaryIO, _TeeWriter(writer, captured_out))

        server = LanguageServer(
            reader,
            writer,
            QueryHandler(logger_name="refnav.analysis"),
            server_info=ServerInfo(config.server_name, config.server_version),
            logger_name="refnav.protocol",
        )
        try:
            server.run()
        except FramingError as exc:
            telemetry.get_logger().error(f"LSP server error: {exc}")
            return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = build_config(_parse_args(argv))
    config.apply_logging()
    return serve(config, sys.stdin.buffer, sys.stdout.buffer)


if __name__ == "__main__":  # pragma: no cover - manual entry
    sys.exit(main())
