"""Fixtures for CLI tests."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep CLI invocations from replacing the test run's log handlers."""
    with patch(
        "tlexport.config.logging_factory.configure_logging_from_cli"
    ) as configure:
        yield configure
