"""Pytest configuration and fixtures for config package tests."""

import pytest


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary."""
    return {
        "registry": {
            "lib_dir": "/var/lib/udf",
            "verify_checksums": False,
        },
        "snapshot": {
            "directory": "/var/lib/udf/snapshots",
        },
    }


@pytest.fixture
def clean_env(monkeypatch):
    """Remove any UDFKNOBS_ variables inherited from the host."""
    import os

    for name in list(os.environ):
        if name.startswith("UDFKNOBS_"):
            monkeypatch.delenv(name)
    return monkeypatch
