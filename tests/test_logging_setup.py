"""Tests for the JSONL logging bootstrap."""

import json
import logging
import sys

import pytest

from librarian.logging_setup import JsonlHandler
from librarian.logging_setup import init_console_logging
from librarian.logging_setup import init_json_logging


@pytest.fixture(autouse=True)
def restore_loggers():
    root = logging.getLogger()
    librarian = logging.getLogger("librarian")
    root_handlers, root_level = root.handlers[:], root.level
    librarian_handlers, librarian_level = librarian.handlers[:], librarian.level
    yield
    root.handlers[:] = root_handlers
    root.setLevel(root_level)
    librarian.handlers[:] = librarian_handlers
    librarian.setLevel(librarian_level)


def test_records_written_as_jsonl(tmp_path):
    path = tmp_path / "logs" / "out.jsonl"
    init_json_logging(str(path), "debug")

    logging.getLogger("librarian.loader").debug("[librarian:find] App\\User -> map", extra={"event": "find"})

    record = json.loads(path.read_text().splitlines()[-1])
    assert record["lvl"] == "DEBUG"
    assert record["logger"] == "librarian.loader"
    assert record["event"] == "find"
    assert record["message"] == "[librarian:find] App\\User -> map"
    assert record["schema"] == {"name": "librarian.log", "ver": "1.0.0"}


def test_extra_fields_are_copied(tmp_path):
    handler = JsonlHandler(str(tmp_path / "out.jsonl"))
    record = logging.LogRecord("librarian.loader", logging.INFO, __file__, 1, "loaded", (), None)
    record.file = "/src/App/User.py"

    payload = handler.format_record(record)

    assert payload["file"] == "/src/App/User.py"
    assert "msg" not in payload


def test_reinit_replaces_previous_sink(tmp_path):
    init_json_logging(str(tmp_path / "a.jsonl"))
    init_json_logging(str(tmp_path / "b.jsonl"))

    sinks = [h for h in logging.getLogger().handlers if isinstance(h, JsonlHandler)]
    assert [h.path.name for h in sinks] == ["b.jsonl"]


def test_console_logging_targets_stderr_once():
    init_console_logging()
    init_console_logging(logging.INFO)

    librarian = logging.getLogger("librarian")
    stderr_handlers = [h for h in librarian.handlers if getattr(h, "stream", None) is sys.stderr]
    assert len(stderr_handlers) == 1
    assert librarian.level == logging.INFO
