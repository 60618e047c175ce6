"""Tests for the format_result dispatcher and OutputSettings."""

import json

import pytest

from quirksync.output.formatters import OutputSettings, format_result
from quirksync.services.result import ServiceError, ServiceResult


def _ok(op: str = "sync", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "sync", msg: str = "fail") -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code="FETCH_ERROR", message=msg, detail={"stage": "authenticated"}),
    )


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False

    def test_frozen(self) -> None:
        s = OutputSettings(json_output=True)
        with pytest.raises(Exception):
            s.quiet = True  # type: ignore[misc]


class TestFormatResultJSON:
    def test_json_mode_returns_valid_json(self) -> None:
        result = _ok(stage="done")
        output = format_result(result, settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "sync"
        assert data["data"]["stage"] == "done"

    def test_json_mode_error(self) -> None:
        output = format_result(_err(msg="Bad"), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is False
        assert data["error"]["code"] == "FETCH_ERROR"
        assert data["error"]["detail"]["stage"] == "authenticated"

    def test_json_beats_quiet(self) -> None:
        output = format_result(_ok(), settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["ok"] is True


class TestFormatResultQuiet:
    def test_quiet_success(self) -> None:
        assert format_result(_ok(), settings=OutputSettings(quiet=True)) == "OK: sync"

    def test_quiet_error(self) -> None:
        output = format_result(_err(msg="boom"), settings=OutputSettings(quiet=True))
        assert output.startswith("ERROR: sync")
        assert "boom" in output


class TestFormatResultDefault:
    def test_default_is_human_readable(self) -> None:
        output = format_result(_ok(stage="done"))
        assert "OK" in output
        assert "sync" in output
        assert not output.lstrip().startswith("{")
