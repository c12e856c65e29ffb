"""Tests for LoaderError rendering and error message formatting."""

from io import StringIO

from rich.console import Console

from librarian.errors import ErrorKind
from librarian.errors import LoaderError
from librarian.ui.error_display import display_loader_error
from librarian.utils.error_format import escape_markup
from librarian.utils.error_format import format_error_message


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


def test_not_readable_lists_tried_paths():
    console, buffer = _console()
    error = LoaderError(
        "Cannot find class, interface or enum `App\\User` in the following paths:\n/src\n/vendor",
        ErrorKind.NOT_READABLE,
        name="App\\User",
        tried_paths=["/src", "/vendor"],
    )

    assert display_loader_error(console, error) is True

    output = buffer.getvalue()
    assert "Class File Not Found" in output
    assert "App\\User" in output
    assert "/src" in output
    assert "/vendor" in output
    assert "Check the prefix directories" in output


def test_not_readable_without_any_candidate_directory():
    console, buffer = _console()
    error = LoaderError("Cannot find class `X` in the following paths:", ErrorKind.NOT_READABLE, name="X")

    display_loader_error(console, error)

    assert "No prefix matched" in buffer.getvalue()


def test_not_declared_and_already_loaded_titles():
    console, buffer = _console()

    display_loader_error(console, LoaderError("did not declare", ErrorKind.NOT_DECLARED, name="A"))
    display_loader_error(console, LoaderError("already loaded", ErrorKind.ALREADY_LOADED, name="B"))

    output = buffer.getvalue()
    assert "Class Not Declared" in output
    assert "Already Loaded" in output


def test_other_errors_are_not_handled():
    console, buffer = _console()

    assert display_loader_error(console, ValueError("nope")) is False
    assert buffer.getvalue() == ""


def test_loader_error_code_and_repr():
    error = LoaderError("msg", ErrorKind.NOT_DECLARED, name="App\\User")

    assert error.code == 2
    assert repr(error) == "LoaderError(NOT_DECLARED, name='App\\\\User')"
    assert error.tried_paths == []


def test_format_error_message():
    assert format_error_message(ValueError("invalid input")) == "ValueError: invalid input"
    assert format_error_message(ValueError("invalid input"), include_type=False) == "invalid input"
    assert format_error_message(NameError("NameError: x")) == "NameError: x"
    assert format_error_message(KeyboardInterrupt()) == "KeyboardInterrupt: Operation interrupted by user."
    assert format_error_message(RuntimeError()) == "RuntimeError: (no additional details)"


def test_escape_markup():
    assert escape_markup("[bold]App[/bold]") == "\\[bold]App\\[/bold]"
