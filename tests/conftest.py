# tests/conftest.py
import logging
from unittest.mock import MagicMock

import pytest

from settings.config_models import AppSettings

SETTINGS_ENV_VARS = [
    "DOTFILES_URL",
    "BOOTSTRAP_REPO_URL",
    "BOOTSTRAP_HOME",
    "DOTFILES_HOME",
    "LOG_LEVEL",
    "LOG_FILE",
    "BREW_DEPENDENCIES",
    "BREW_TAPS",
    "BREW_INSTALL_SCRIPT_URL",
    "PLAYBOOK_CHECK_MODE",
    "PLAYBOOK_EXTRA_ARGS",
    "WORKSTATION_SKIP_VENV",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the operator's own environment and config file out of every test."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WORKSTATION_CONFIG", str(tmp_path / "no-such-config.yaml"))


@pytest.fixture
def app_settings(tmp_path):
    """Settings whose homes live under the test's temporary directory."""
    return AppSettings(
        bootstrap_home=tmp_path / ".workstation",
        dotfiles_home=tmp_path / ".dotfiles",
        clt_wait_timeout=5,
        clt_poll_interval=0,
    )


@pytest.fixture
def dotfiles_settings(app_settings):
    return app_settings.model_copy(
        update={"dotfiles_url": "https://example.com/me/dotfiles.git"}
    )


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)
