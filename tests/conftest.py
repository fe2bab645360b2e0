"""Pytest configuration for the Lox test suite."""

import sys
from pathlib import Path

# Make the src/ layout importable without an install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lox.runtime import run  # noqa: E402


def run_ok(source: str) -> str:
    """Run source that must succeed; returns its stdout."""
    result = run(source)
    assert result.exit_code == 0, result.stderr
    return result.stdout
