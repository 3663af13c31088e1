"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import src...' works, and keeps
the cached settings from leaking between tests.
"""
import sys
from pathlib import Path

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from src.config.settings import reset_settings  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Run every test with default settings, reloaded from a clean environment."""
    for name in ("LAZYDATE_NAIVE_TIMEZONE", "LAZYDATE_LOG_LEVEL", "LAZYDATE_LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()
