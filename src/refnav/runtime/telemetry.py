"""Logging and profiling for the language server, built on telelog.

Modules use four entry points: ``configure`` to (re)build the telelog
configuration, ``get_logger`` for a cached logger, ``record_event`` for
structured one-off events and ``span`` to profile a block of work.

stdout carries the protocol, so nothing is written to the console unless
``REFNAV_CONSOLE=1`` is set. Every preset logs to a file instead.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "REFNAV_"
DEFAULT_LOGGER_NAME = "refnav"
DEFAULT_BUFFER_SIZE = 2048

_LOGGER_CACHE: MutableMapping[str, Any] = {}
_ACTIVE_CONFIG: Optional[Any] = None


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}") or None


def _env_flag(name: str) -> bool:
    return (_env(name) or "").lower() in {"1", "true", "yes", "on"}


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return repr(value) if isinstance(value, (dict, list, tuple, set)) else str(value)


@dataclass(frozen=True, slots=True)
class LogProfile:
    """Settings a preset or an explicit configuration resolves to."""

    level: str = "INFO"
    log_file: Optional[str] = None
    json: bool = False
    buffered: bool = False

    def to_config(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level.upper())
        console = _env_flag("CONSOLE")
        config.with_console_output(console)
        if console:
            config.with_colored_output(not _env_flag("NO_COLOR"))
        if self.json:
            config.with_json_format(True)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffered:
            config.with_buffering(True)
            config.with_buffer_size(
                int(_env("LOG_BUFFER_SIZE") or DEFAULT_BUFFER_SIZE)
            )
        config.with_profiling(True)
        return config


PRESETS: Dict[str, LogProfile] = {
    "development": LogProfile(level="DEBUG", log_file="refnav-debug.log"),
    "production": LogProfile(level="INFO", log_file="refnav.log", buffered=True),
    "performance": LogProfile(
        level="DEBUG", log_file="refnav-performance.log", json=True, buffered=True
    ),
}


def build_config(
    *, level: Optional[str] = None, log_file: Optional[str] = None
) -> Any:
    """Build a telelog config from explicit values, then ``REFNAV_*`` variables."""

    return LogProfile(
        level=level or _env("LOG_LEVEL") or "INFO",
        log_file=log_file or _env("LOG_FILE"),
        json=_env_flag("LOG_JSON"),
        buffered=_env_flag("LOG_BUFFERED"),
    ).to_config()


def preset_config(name: str) -> Any:
    try:
        profile = PRESETS[name.lower()]
    except KeyError:
        raise ValueError(
            f"unknown log preset {name!r}; expected one of {sorted(PRESETS)}"
        ) from None
    log_file = _env("LOG_FILE")
    if log_file:
        profile = replace(profile, log_file=log_file)
    return profile.to_config()


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Replace the active telelog configuration and drop cached loggers.

    ``config`` adopts a prepared ``tl.Config``. ``preset`` names an entry of
    ``PRESETS``. With neither, the configuration comes from the environment.
    """

    global _ACTIVE_CONFIG
    if config is not None and preset:
        raise ValueError("pass either a config or a preset, not both")

    if preset:
        config = preset_config(preset)
    elif config is None:
        config = build_config()

    _ACTIVE_CONFIG = config
    _LOGGER_CACHE.clear()


def get_logger(name: Optional[str] = None) -> Any:
    global _ACTIVE_CONFIG
    if _ACTIVE_CONFIG is None:
        _ACTIVE_CONFIG = build_config()
    logger_name = name or DEFAULT_LOGGER_NAME
    if logger_name not in _LOGGER_CACHE:
        _LOGGER_CACHE[logger_name] = tl.Logger.with_config(logger_name, _ACTIVE_CONFIG)
    return _LOGGER_CACHE[logger_name]


def _write(log: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    """Send ``payload`` as structured pairs when the logger supports it."""

    level_name = str(level).lower()
    structured = getattr(log, f"{level_name}_with", None)
    if structured is not None:
        structured(message, [(str(k), _stringify(v)) for k, v in payload.items()])
        return
    plain = getattr(log, level_name, None)
    if plain is None:
        raise ValueError(f"unsupported log level {level!r}")
    plain(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Log ``event::<name>`` with ``data`` attached."""

    payload = {"event": name, **(data or {})}
    _write(get_logger(logger_name), level, f"event::{name}", payload)


@dataclass
class SpanHandle:
    """Collects metadata for the span that yielded it."""

    logger: Any
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _stringify(value)

    def fail(self, reason: str) -> None:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        payload["reason"] = reason
        _write(self.logger, "error", "span::fail", payload)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile the enclosed block under ``name``.

    ``component`` is tracked with telelog's component tracker. ``metadata`` is
    attached as logger context until the block exits. An exception escaping
    the block is logged as ``span::fail`` and re-raised.
    """

    log = get_logger(logger_name)
    context = {key: _stringify(value) for key, value in (metadata or {}).items()}
    for key, value in context.items():
        log.add_context(key, value)

    handle = SpanHandle(
        logger=log, span_name=name, component_name=component, metadata=dict(context)
    )
    try:
        with ExitStack() as stack:
            if component:
                stack.enter_context(log.track_component(component))
            stack.enter_context(log.profile(name))
            try:
                yield handle
            except Exception as exc:
                handle.fail(str(exc))
                raise
    finally:
        for key in context:
            log.remove_context(key)


configure()

__all__ = [
    "PRESETS",
    "LogProfile",
    "SpanHandle",
    "build_config",
    "configure",
    "get_logger",
    "preset_config",
    "record_event",
    "span",
]
