"""Tests for structured logging setup and sync_id correlation."""

from __future__ import annotations

import json
import logging

import pytest

from tradelog.observability.logger import (
    _add_sync_id,
    get_sync_id,
    new_sync_id,
    set_sync_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    set_sync_id("")


class TestSyncId:
    def test_new_sync_id_is_set_in_context(self):
        sid = new_sync_id()
        assert len(sid) == 12
        assert get_sync_id() == sid

    def test_processor_adds_field_only_inside_pass(self):
        set_sync_id("")
        assert "sync_id" not in _add_sync_id(None, "info", {"event": "x"})
        set_sync_id("abc123")
        assert _add_sync_id(None, "info", {"event": "x"})["sync_id"] == "abc123"


class TestSetupLogging:
    def test_json_output_carries_sync_id(self, capsys):
        setup_logging("DEBUG", "json")
        set_sync_id("pass-1")

        logging.getLogger("tradelog.test").info("Mirror sync complete: %d updated", 3)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "Mirror sync complete: 3 updated"
        assert entry["sync_id"] == "pass-1"
        assert entry["level"] == "info"
        assert entry["logger"] == "tradelog.test"

    def test_level_filters(self, capsys):
        setup_logging("WARNING", "console")
        logging.getLogger("tradelog.test").info("hidden")
        assert "hidden" not in capsys.readouterr().err
        assert logging.getLogger().level == logging.WARNING
