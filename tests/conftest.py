"""
Pytest configuration and fixtures for Accountsmith tests.
"""

import tempfile
from pathlib import Path

import pytest

from accountsmith.core import AccountProvisioner
from accountsmith.osinfo import StaticOSInfo
from accountsmith.settings import reload_settings


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from ACCOUNTSMITH_* variables of the calling shell."""
    for name in ("ACCOUNTSMITH_LOG_LEVEL", "ACCOUNTSMITH_OS_FAMILY", "ACCOUNTSMITH_DEFAULT_SSH_KEY_TYPE"):
        monkeypatch.delenv(name, raising=False)
    reload_settings()
    yield
    reload_settings()


@pytest.fixture
def provisioner():
    """Provisioner for a Linux host."""
    return AccountProvisioner(os_info=StaticOSInfo("Linux"))
