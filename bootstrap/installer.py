# bootstrap/installer.py
# -*- coding: utf-8 -*-
"""
Ensures the package manager and its prerequisites are installed.

The functions in this module are orchestrator tasks. Each one checks its
own precondition first and installs only what is missing; nothing that is
already present is upgraded here. Any failure raises, and the orchestrator
treats every installer task as fatal because the later steps assume these
tools exist.
"""

import logging
import subprocess
import time

from bootstrap.homebrew import HomebrewManager
from bootstrap.prober import command_line_tools_installed, find_brew, is_macos
from common.command_utils import get_symbols, run_command
from common.errors import MissingPrerequisiteError
from common.orchestrator import record_change
from settings.config_models import AppSettings

logger = logging.getLogger(__name__)


def _wait_for_command_line_tools(app_settings: AppSettings) -> bool:
    deadline = time.monotonic() + app_settings.clt_wait_timeout
    while time.monotonic() < deadline:
        if command_line_tools_installed(app_settings, logger):
            return True
        time.sleep(app_settings.clt_poll_interval)
    return command_line_tools_installed(app_settings, logger)


def ensure_command_line_tools(context: dict, app_settings: AppSettings, **kwargs) -> None:
    """
    Ensures the macOS command-line developer tools are installed.

    `xcode-select --install` only opens the system installer dialog, so the
    presence check is polled until the tools appear or the configured
    timeout expires. On other platforms this is a no-op.

    Raises:
        MissingPrerequisiteError: The tools are still absent afterwards.
    """
    symbols = get_symbols(app_settings)
    if not is_macos():
        logger.info(
            f"{symbols.get('info', '')} Not running on macOS; command-line developer tools are not required."
        )
        return

    if command_line_tools_installed(app_settings, logger):
        logger.info(f"{symbols.get('success', '')} Command-line developer tools already installed.")
        return

    logger.warning(
        "Command-line developer tools not found. Starting the installer; "
        "accept the license dialog to continue."
    )
    try:
        run_command(["xcode-select", "--install"], app_settings, current_logger=logger)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise MissingPrerequisiteError(
            f"Could not start the command-line developer tools installer: {e}",
            step="command-line tools",
        ) from e

    if not _wait_for_command_line_tools(app_settings):
        raise MissingPrerequisiteError(
            f"Command-line developer tools still missing after {app_settings.clt_wait_timeout}s.",
            step="command-line tools",
        )
    record_change(context, "installed command-line developer tools")
    logger.info(f"{symbols.get('success', '')} Command-line developer tools are now available.")


def ensure_homebrew(context: dict, app_settings: AppSettings, **kwargs) -> str:
    """
    Ensures Homebrew is installed and records its path in the context.

    Homebrew's own installer may prompt for a sudo password; it is run
    attached to the terminal so those prompts reach the operator.

    Returns:
        The absolute path of `brew`.

    Raises:
        MissingPrerequisiteError: Installation failed or `brew` is still
            missing afterwards.
    """
    symbols = get_symbols(app_settings)
    brew_path = find_brew()
    if brew_path:
        logger.info(f"{symbols.get('success', '')} Homebrew already installed at {brew_path}.")
        context["brew_path"] = brew_path
        return brew_path

    logger.warning("Homebrew not found. Running the official install script.")
    install_cmd = (
        f'/bin/bash -c "$(curl -fsSL {app_settings.brew.install_script_url})"'
    )
    try:
        run_command(install_cmd, app_settings, shell=True, current_logger=logger)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise MissingPrerequisiteError(
            f"Homebrew installation failed: {e}", step="homebrew"
        ) from e

    brew_path = find_brew()
    if not brew_path:
        raise MissingPrerequisiteError(
            "Homebrew install script finished but 'brew' could not be found.",
            step="homebrew",
        )
    record_change(context, "installed homebrew")
    context["brew_path"] = brew_path
    logger.info(f"{symbols.get('success', '')} Homebrew is now available at {brew_path}.")
    return brew_path


def ensure_dependencies(context: dict, app_settings: AppSettings, **kwargs) -> list:
    """
    Installs the configured formulae (Ansible and friends) that are missing.

    Returns:
        The formulae installed during this call.
    """
    symbols = get_symbols(app_settings)
    brew_path = context.get("brew_path") or find_brew()
    if not brew_path:
        raise MissingPrerequisiteError(
            "Homebrew is required to install dependencies but was not found.",
            step="dependencies",
        )

    manager = HomebrewManager(brew_path, app_settings, logger)
    installed = manager.install(list(app_settings.brew.dependencies))
    for formula in installed:
        record_change(context, f"installed formula {formula}")

    if installed:
        logger.info(f"{symbols.get('package', '')} Installed: {', '.join(installed)}")
    else:
        logger.info(f"{symbols.get('success', '')} All dependencies already installed.")
    return installed
