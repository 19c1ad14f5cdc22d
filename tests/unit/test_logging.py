"""Tests for the gitgrip.logging module."""

from __future__ import annotations

import json
import logging
import os
from unittest.mock import patch

import pytest

from gitgrip.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _clear_bound_context() -> None:
    clear_context()


class TestConfigureLogging:
    def test_default_level_is_warning(self) -> None:
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("GITGRIP_LOG_LEVEL", None)
            configure_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_level_from_environment(self) -> None:
        with patch.dict(os.environ, {"GITGRIP_LOG_LEVEL": "debug"}):
            configure_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_explicit_level_wins(self) -> None:
        with patch.dict(os.environ, {"GITGRIP_LOG_LEVEL": "debug"}):
            configure_logging(level=logging.ERROR)
        assert logging.getLogger().level == logging.ERROR

    def test_git_library_logging_stays_quiet(self) -> None:
        configure_logging(level=logging.DEBUG)
        assert logging.getLogger("git").level == logging.INFO

    def test_reconfiguring_does_not_duplicate_handlers(self) -> None:
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1


class TestOutput:
    def test_json_goes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(force_json=True, level=logging.INFO)

        get_logger("gitgrip.test").info("branch_checked_out", branch="main")

        captured = capsys.readouterr()
        assert captured.out == ""
        event = json.loads(captured.err.strip().splitlines()[-1])
        assert event["event"] == "branch_checked_out"
        assert event["branch"] == "main"
        assert event["level"] == "info"
        assert event["logger"] == "gitgrip.test"

    def test_json_via_environment(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.dict(os.environ, {"GITGRIP_LOG_FORMAT": "json"}):
            configure_logging(level=logging.INFO)

        get_logger("gitgrip.test").info("fetched", remote="origin")

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert event["remote"] == "origin"

    def test_bound_context_is_included(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(force_json=True, level=logging.INFO)

        bind_context(command="sync")
        get_logger("gitgrip.test").info("sync_started")
        clear_context()
        get_logger("gitgrip.test").info("sync_finished")

        lines = capsys.readouterr().err.strip().splitlines()
        assert json.loads(lines[-2])["command"] == "sync"
        assert "command" not in json.loads(lines[-1])

    def test_below_level_is_dropped(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(force_json=True, level=logging.WARNING)
        get_logger("gitgrip.test").info("quiet_event")
        assert "quiet_event" not in capsys.readouterr().err
