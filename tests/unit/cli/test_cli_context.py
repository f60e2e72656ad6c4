"""Tests for CLI context dependency injection."""

from unittest.mock import Mock, patch

import pytest
import typer

from src.cli.context import CLIContext, build_cli_context, get_cli_context
from src.infra.helm import CommandRunner


def test_cli_context_is_immutable():
    """Test that CLIContext is frozen/immutable."""
    ctx = CLIContext(console=Mock(), runner=Mock())

    with pytest.raises(AttributeError):
        ctx.console = Mock()  # type: ignore[misc]


def test_build_cli_context_creates_all_dependencies():
    """Test that build_cli_context creates all required dependencies."""
    ctx = build_cli_context()

    assert ctx.console is not None
    assert isinstance(ctx.runner, CommandRunner)


def test_get_cli_context_from_typer_context():
    """Test that get_cli_context retrieves from Typer context."""
    mock_ctx_obj = CLIContext(console=Mock(), runner=Mock())

    typer_ctx = Mock(spec=typer.Context)
    typer_ctx.obj = mock_ctx_obj

    result = get_cli_context(typer_ctx)

    assert result is mock_ctx_obj


def test_get_cli_context_with_none_falls_back():
    """Test that get_cli_context creates new context when ctx is None."""
    with patch("src.cli.context.build_cli_context") as mock_build:
        mock_build.return_value = Mock(spec=CLIContext)

        get_cli_context(None)

        mock_build.assert_called_once()
