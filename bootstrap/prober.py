# bootstrap/prober.py
# -*- coding: utf-8 -*-
"""
Read-only checks of the workstation's current state.

Nothing in this module mutates the machine. Each check stands on its own so
that a partially completed earlier run is detected piece by piece rather
than assumed consistent.
"""

import logging
import os
import platform
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from bootstrap.homebrew import HomebrewManager
from common.command_utils import run_command
from settings.config_models import AppSettings, ProbeResult

module_logger = logging.getLogger(__name__)

# Default install locations: Apple Silicon, Intel macOS, Linux.
BREW_CANDIDATES: List[str] = [
    "/opt/homebrew/bin/brew",
    "/usr/local/bin/brew",
    "/home/linuxbrew/.linuxbrew/bin/brew",
]


def is_macos() -> bool:
    return platform.system() == "Darwin"


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def find_brew() -> Optional[str]:
    """
    Locate the `brew` executable.

    A fresh Homebrew install is usually not on PATH until the shell profile
    is reloaded, so the default prefixes are searched as well.

    Returns:
        The absolute path of `brew`, or None when Homebrew is not installed.
    """
    on_path = shutil.which("brew")
    if on_path:
        return on_path
    for candidate in BREW_CANDIDATES:
        if _is_executable(candidate):
            return candidate
    return None


def find_ansible_playbook(brew_path: Optional[str] = None) -> Optional[str]:
    """Locate `ansible-playbook`, preferring the Homebrew-installed one."""
    if brew_path:
        candidate = str(Path(brew_path).parent / "ansible-playbook")
        if _is_executable(candidate):
            return candidate
    return shutil.which("ansible-playbook")


def command_line_tools_installed(
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Check for the macOS command-line developer tools with `xcode-select -p`.

    Always True on other platforms, where the tools are not required.
    """
    if not is_macos():
        return True
    try:
        result = run_command(
            ["xcode-select", "-p"],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=current_logger or module_logger,
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0


def is_git_clone(path: Path) -> bool:
    return (Path(path) / ".git").exists()


def probe_environment(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> List[ProbeResult]:
    """
    Run every environment check and collect the results.

    No check is skipped because an earlier one failed; a missing Homebrew
    only makes the formula checks unanswerable, which is reported as such.
    """
    logger_to_use = current_logger if current_logger else module_logger
    results: List[ProbeResult] = []

    if is_macos():
        clt_present = command_line_tools_installed(app_settings, logger_to_use)
        results.append(ProbeResult(name="command-line developer tools", present=clt_present))
    else:
        results.append(
            ProbeResult(
                name="command-line developer tools",
                present=True,
                applicable=False,
                detail="only required on macOS",
            )
        )

    brew_path = find_brew()
    results.append(
        ProbeResult(name="homebrew", present=brew_path is not None, detail=brew_path or "")
    )

    for formula in app_settings.brew.dependencies:
        if brew_path is None:
            results.append(
                ProbeResult(name=f"formula {formula}", present=False, detail="homebrew missing")
            )
            continue
        manager = HomebrewManager(brew_path, app_settings, logger_to_use)
        try:
            installed = manager.is_installed(formula)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            logger_to_use.warning(f"Could not check formula '{formula}': {e}")
            installed = False
        results.append(ProbeResult(name=f"formula {formula}", present=installed))

    results.append(
        ProbeResult(
            name="bootstrap home",
            present=is_git_clone(app_settings.bootstrap_home),
            detail=str(app_settings.bootstrap_home),
        )
    )
    if app_settings.dotfiles_configured:
        results.append(
            ProbeResult(
                name="dotfiles home",
                present=is_git_clone(app_settings.dotfiles_home),
                detail=str(app_settings.dotfiles_home),
            )
        )
    else:
        results.append(
            ProbeResult(
                name="dotfiles home",
                present=False,
                applicable=False,
                detail="DOTFILES_URL not set",
            )
        )
    return results
