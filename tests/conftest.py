"""Shared fixtures for the attendance engine tests."""
import os

import pytest

from bunkplan.config import reset_config


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from BUNKPLAN_* variables and the cached config."""
    for key in list(os.environ):
        if key.upper().startswith("BUNKPLAN_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()
