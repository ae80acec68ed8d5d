from __future__ import annotations

import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]


def pytest_configure() -> None:
    """
    Keep a `src/` layout while allowing `pytest` to run without requiring an editable install.
    """

    sys.path.insert(0, str(PROJECT_ROOT / "src"))


@pytest.fixture
def testdata_dir() -> Path:
    return PROJECT_ROOT / "testdata"
