"""Server configuration sourced from ``REFNAV_*`` variables and CLI flags."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

from refnav import __version__

from . import telemetry

DEFAULT_SERVER_NAME = "refnav"


@dataclass(frozen=True, slots=True)
class ServerConfig:
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_preset: Optional[str] = None
    testdata_dir: Optional[str] = None
    server_name: str = DEFAULT_SERVER_NAME
    server_version: str = __version__

    @classmethod
    def from_env(cls) -> "ServerConfig":
        env = telemetry.ENV_PREFIX
        return cls(
            log_level=(os.getenv(f"{env}LOG_LEVEL") or "INFO").upper(),
            log_file=os.getenv(f"{env}LOG_FILE") or None,
            log_preset=os.getenv(f"{env}LOG_PRESET") or None,
            testdata_dir=os.getenv(f"{env}TESTDATA") or None,
        )

    def override(self, **changes: object) -> "ServerConfig":
        """Return a copy with every non-``None`` value in ``changes`` applied."""

        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def apply_logging(self) -> None:
        if self.log_preset:
            telemetry.configure(preset=self.log_preset)
            return
        telemetry.configure(
            config=telemetry.build_config(level=self.log_level, log_file=self.log_file)
        )


__all__ = ["ServerConfig", "DEFAULT_SERVER_NAME"]
