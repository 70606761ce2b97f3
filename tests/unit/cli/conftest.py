"""Fixtures for CLI tests."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ffharness.cli import main
from ffharness.config import HarnessConfig


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep CLI invocations from reconfiguring the root logger."""
    with patch("ffharness.cli.configure_logging") as mock_configure:
        yield mock_configure


@pytest.fixture
def invoke(runner):
    """Invoke the CLI with a default config and the given engine."""

    def _invoke(args, engine, config=None):
        obj = {"config": config or HarnessConfig(), "engine": engine}
        return runner.invoke(main, args, obj=obj)

    return _invoke
