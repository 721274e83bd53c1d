"""
mlog-tools - Test Configuration
===============================

Shared fixtures for the mlog-tools test suite.

It provides:
- Paths to the project root and the example programs
- A parse helper returning only the node sequence
- A Click test runner for the command-line tests
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from mlog_tools.parser import parse


# ═══════════════════════════════════════════════════════════════════════════════
# PATH FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture(scope="session")
def project_root() -> Path:
    """
    Fixture: Get project root directory.

    Returns the absolute path to the project root (where pyproject.toml is).
    """
    current = Path(__file__).parent.parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def examples_dir(project_root: Path) -> Path:
    """
    Fixture: Get examples directory.
    """
    return project_root / "examples"


@pytest.fixture(scope="session")
def example_programs(examples_dir: Path) -> list[Path]:
    """
    Fixture: Every ``.mlog`` example program, sorted by name.
    """
    return sorted(examples_dir.glob("*.mlog"))


# ═══════════════════════════════════════════════════════════════════════════════
# HELPER FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def nodes_of():
    """
    Fixture: Parse source text and return only its nodes.
    """
    def _nodes_of(text: str):
        return parse(text).nodes
    return _nodes_of


@pytest.fixture
def runner() -> CliRunner:
    """
    Fixture: Click runner for invoking the ``mlog`` command.
    """
    return CliRunner()
