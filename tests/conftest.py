"""Pytest configuration for librarian tests."""

import os
from pathlib import Path

import pytest

from librarian.runtime import HostRuntime


def write_class_file(root: Path, relative: str, source: str = "") -> str:
    """Write ``source`` to ``root/relative`` (``/``-separated) and return its path."""
    path = root.joinpath(*relative.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(source)
    return str(path)


def expected(directory: Path | str, *parts: str) -> str:
    """Path the loader builds: ``directory + os.sep + relative``."""
    return str(directory) + os.sep + os.path.join(*parts)


class FakeRuntime(HostRuntime):
    """Runtime whose execution is scripted: file path -> names it declares."""

    def __init__(self, declares: dict[str, list[str]] | None = None):
        super().__init__(search_path=[])
        self.declares = declares or {}
        self.executed: list[tuple[str, str]] = []

    def execute(self, path, namespace=""):
        path = os.fspath(path)
        self.executed.append((path, namespace))
        for name in self.declares.get(path, []):
            self.declare(name, type(name.rsplit("\\", 1)[-1], (), {}))


@pytest.fixture
def runtime():
    return HostRuntime(search_path=[])


@pytest.fixture
def fake_runtime():
    return FakeRuntime()


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path, monkeypatch):
    """Keep tests away from real ~/.librarian settings and LIBRARIAN_* env."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("LIBRARIAN_MODE", raising=False)
