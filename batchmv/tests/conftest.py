"""Shared pytest fixtures."""

import pytest
from rich.console import Console

from batchmv.tests import fixtures


@pytest.fixture
def quiet_console() -> Console:
    """Console that swallows status output."""
    return fixtures.quiet_console()
