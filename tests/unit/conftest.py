"""
Unit test conftest.py for response-envelope.

Unit tests must not pick up a developer's envelope.yaml or ENVELOPE_* variables.
"""

import os

import pytest

from response_envelope.config.settings import CONFIG_FILE_ENV_VAR, ENV_VARS, reset_settings


@pytest.fixture(autouse=True)
def isolated_envelope_settings(monkeypatch, tmp_path):
    """Run each unit test from an empty directory with no envelope settings in the environment."""
    for env_var in list(ENV_VARS.values()) + [CONFIG_FILE_ENV_VAR]:
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()
