import pytest
import typer

from src.cli.shared.console import with_error_handling
from src.installer.errors import InstallerError, RollbackFailedError


def test_with_error_handling_handles_installer_error():
    @with_error_handling
    def _command() -> None:
        raise InstallerError("Boom", details="extra")

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 1


def test_with_error_handling_handles_composite_error():
    @with_error_handling
    def _command() -> None:
        raise RollbackFailedError(InstallerError("A"), InstallerError("B"))

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 1


def test_with_error_handling_handles_keyboard_interrupt():
    @with_error_handling
    def _command() -> None:
        raise KeyboardInterrupt

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 130


def test_with_error_handling_lets_other_errors_through():
    @with_error_handling
    def _command() -> None:
        raise ValueError("unexpected")

    with pytest.raises(ValueError):
        _command()
