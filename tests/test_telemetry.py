from __future__ import annotations

import pytest

from refnav.runtime import telemetry


def test_presets_write_to_files() -> None:
    assert set(telemetry.PRESETS) == {"development", "production", "performance"}
    assert all(profile.log_file for profile in telemetry.PRESETS.values())
    assert telemetry.PRESETS["performance"].json is True


def test_unknown_preset_is_rejected() -> None:
    with pytest.raises(ValueError, match="performance_analysis"):
        telemetry.preset_config("performance_analysis")


def test_configure_rejects_config_and_preset_together() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(config=telemetry.build_config(), preset="production")


def test_span_reraises_and_keeps_logging_usable() -> None:
    with pytest.raises(KeyError):
        with telemetry.span("test::span", component="tests", metadata={"uri": "x"}):
            raise KeyError("missing")

    with telemetry.span("test::span", component="tests") as handle:
        handle.add_metadata("count", 2)

    assert handle.metadata == {"count": "2"}
