"""Tests for ordered_wheels.logs."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from ordered_wheels.logs import configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
    logging.basicConfig(force=True)


class TestConfigureLogging:
    def test_json_lines_on_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_log=True)
        get_logger("test").info("publishing package", package="base")

        captured = capsys.readouterr()
        assert captured.out == ""
        event = json.loads(captured.err.strip().splitlines()[-1])
        assert event["event"] == "publishing package"
        assert event["package"] == "base"
        assert event["level"] == "info"

    def test_bound_context(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_log=True)
        with structlog.contextvars.bound_contextvars(package="base"):
            get_logger("test").info("nothing to publish")

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert event["package"] == "base"

    def test_quiet_hides_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(quiet=True, json_log=True)
        get_logger("test").info("hidden")
        get_logger("test").warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_verbose_shows_debug(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, json_log=True)
        get_logger("test").debug("running git")
        assert "running git" in capsys.readouterr().err
