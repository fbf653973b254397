"""Shared fixtures for ElProfessor tests."""

import pytest

ENV_VARS = (
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "LOG_LEVEL",
    "EL_PROFESSOR_RUNTIME",
    "REQUEST_TIMEOUT_MS",
    "RETRY_MAX_ATTEMPTS",
    "RETRY_BASE_DELAY_MS",
    "RETRY_MAX_DELAY_MS",
    "HISTORY_LIMIT",
    "DOCKER_CONTAINER",
    "CONTAINER",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Run every test without ElProfessor variables and away from any real .env file."""
    for name in ENV_VARS:
        # setenv first so values loaded from .env files during the test are undone
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    yield
