"""Root conftest — keep the developer's environment out of config tests."""

import pytest

from latency.config import Config


@pytest.fixture(autouse=True)
def clean_latency_env(monkeypatch):
    for env_var in Config.ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)
