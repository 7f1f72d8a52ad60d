# settings/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration.

This module defines the structured settings for the workstation bootstrap,
including defaults, type annotations, and descriptions.
It utilizes Pydantic for data validation and settings management.
"""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Default Static Values (can be overridden by config file/env/cli) ---
BOOTSTRAP_REPO_URL_DEFAULT: str = (
    "https://github.com/trkw/workstation-bootstrap.git"
)
BOOTSTRAP_HOME_DEFAULT: Path = Path.home() / ".workstation"
DOTFILES_HOME_DEFAULT: Path = Path.home() / ".dotfiles"
CONFIG_FILE_DEFAULT: Path = Path.home() / ".config" / "workstation" / "config.yaml"
LOG_PREFIX_DEFAULT: str = "[WORKSTATION]"

HOMEBREW_INSTALL_SCRIPT_URL_DEFAULT: str = (
    "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
)
HOMEBREW_DEPENDENCIES_DEFAULT: List[str] = ["git", "ansible"]
# `brew bundle` and `brew services` are built into current Homebrew; their
# former taps are deprecated and must not be tapped.
HOMEBREW_TAPS_DEFAULT: List[str] = []

PLAYBOOK_ENTRY_POINT_DEFAULT: str = "playbooks/main.yml"
USER_PLAYBOOK_DEFAULT: str = "ansible/playbook.yml"
PACKAGE_MANIFEST_DEFAULT: str = "Brewfile"

CLT_WAIT_TIMEOUT_DEFAULT: int = 1800
CLT_POLL_INTERVAL_DEFAULT: int = 15

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅", "error": "❌", "warning": "⚠️", "info": "ℹ️",
    "step": "➡️", "gear": "⚙️", "package": "📦", "rocket": "🚀",
    "sparkles": "✨", "critical": "🔥", "debug": "🐛", "skip": "⏭️",
}


class HomebrewSettings(BaseSettings):
    """Package manager settings."""
    model_config = SettingsConfigDict(
        env_prefix='BREW_',
        extra='ignore'
    )

    install_script_url: str = Field(default=HOMEBREW_INSTALL_SCRIPT_URL_DEFAULT,
                                    description="URL of the official Homebrew install script.")
    dependencies: List[str] = Field(default_factory=lambda: list(HOMEBREW_DEPENDENCIES_DEFAULT),
                                    description="Formulae installed (never upgraded) during bootstrap.")
    taps: List[str] = Field(default_factory=lambda: list(HOMEBREW_TAPS_DEFAULT),
                            description="Extra taps ensured on every playbook run; none by default.")


class PlaybookSettings(BaseSettings):
    """Configuration-management engine settings."""
    model_config = SettingsConfigDict(
        env_prefix='PLAYBOOK_',
        extra='ignore'
    )

    entry_point: str = Field(default=PLAYBOOK_ENTRY_POINT_DEFAULT,
                             description="Top-level playbook, relative to the bootstrap home.")
    user_playbook: str = Field(default=USER_PLAYBOOK_DEFAULT,
                               description="Optional user playbook, relative to the dotfiles home.")
    package_manifest: str = Field(default=PACKAGE_MANIFEST_DEFAULT,
                                  description="Optional Brewfile, relative to the dotfiles home.")
    inventory: str = Field(default="localhost,", description="Inventory passed to ansible-playbook.")
    extra_args: List[str] = Field(default_factory=list,
                                  description="Additional arguments passed verbatim to ansible-playbook.")
    check_mode: bool = Field(default=False, description="Run ansible-playbook with --check.")


class AppSettings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(extra='ignore')

    dotfiles_url: Optional[str] = Field(default=None,
                                        description="Dotfiles repository URL (env DOTFILES_URL). Unset disables dotfiles steps.")
    bootstrap_repo_url: str = Field(default=BOOTSTRAP_REPO_URL_DEFAULT,
                                    description="URL of this bootstrap repository.")
    bootstrap_home: Path = Field(default=BOOTSTRAP_HOME_DEFAULT,
                                 description="Local clone of the bootstrap repository.")
    dotfiles_home: Path = Field(default=DOTFILES_HOME_DEFAULT,
                                description="Local clone of the dotfiles repository.")
    clt_wait_timeout: int = Field(default=CLT_WAIT_TIMEOUT_DEFAULT,
                                  description="Seconds to wait for the command-line developer tools installer.")
    clt_poll_interval: int = Field(default=CLT_POLL_INTERVAL_DEFAULT,
                                   description="Seconds between developer tools presence checks.")
    log_prefix: str = Field(default=LOG_PREFIX_DEFAULT,
                            description="Prefix for console log messages.")
    log_level: str = Field(default="INFO", description="Logging level (env LOG_LEVEL).")
    log_file: Optional[Path] = Field(default=None,
                                     description="Optional path for a JSON-structured log file.")

    brew: HomebrewSettings = Field(default_factory=HomebrewSettings)
    playbook: PlaybookSettings = Field(default_factory=PlaybookSettings)

    symbols: Dict[str, str] = Field(default_factory=lambda: dict(SYMBOLS_DEFAULT))

    @field_validator("dotfiles_url")
    @classmethod
    def _blank_url_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("bootstrap_home", "dotfiles_home", "log_file")
    @classmethod
    def _expand_user(cls, value: Optional[Path]) -> Optional[Path]:
        return Path(value).expanduser() if value is not None else None

    @property
    def dotfiles_configured(self) -> bool:
        return self.dotfiles_url is not None

    @property
    def entry_playbook_path(self) -> Path:
        return self.bootstrap_home / self.playbook.entry_point

    @property
    def user_playbook_path(self) -> Path:
        return self.dotfiles_home / self.playbook.user_playbook

    @property
    def package_manifest_path(self) -> Path:
        return self.dotfiles_home / self.playbook.package_manifest


class ProbeResult(BaseModel):
    """Outcome of a single read-only environment check."""

    name: str
    present: bool
    detail: str = ""
    applicable: bool = True
