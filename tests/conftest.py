"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like ``import src``
resolve correctly regardless of the working directory pytest chooses.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()


@pytest.fixture(autouse=True)
def reset_registries():
    """Reset parser and adapter registries before each test.

    This ensures each test starts with only the built-in parsers and no
    registered Prophet servers.
    """
    from src.adapters import reset_adapters
    from src.domain.dispatch import reset_parsers

    reset_parsers()
    reset_adapters()
    yield
    reset_parsers()
    reset_adapters()
