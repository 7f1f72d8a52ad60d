# converge/playbook_runner.py
# -*- coding: utf-8 -*-
"""
Converges the workstation by delegating to Homebrew and Ansible.

A playbook run consists of, in order:
1. the package update (`brew update` and `brew upgrade`),
2. the baseline taps,
3. the entry playbook shipped in the bootstrap repository,
4. the optional dotfiles steps (user playbook, Brewfile) whose files exist.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from bootstrap.homebrew import HomebrewManager
from bootstrap.prober import find_ansible_playbook, find_brew
from common.command_utils import get_symbols, run_command
from common.errors import MissingPrerequisiteError, PlaybookError
from common.logging_config import log_performance
from common.orchestrator import Orchestrator, record_change
from converge.optional_steps import OptionalStep, enabled_optional_steps
from settings.config_models import AppSettings

logger = logging.getLogger(__name__)


def _homebrew(context: dict, app_settings: AppSettings) -> HomebrewManager:
    brew_path = context.get("brew_path") or find_brew()
    if not brew_path:
        raise MissingPrerequisiteError(
            "Homebrew was not found. Run the full bootstrap first.",
            step="homebrew",
        )
    context["brew_path"] = brew_path
    return HomebrewManager(brew_path, app_settings, logger)


def build_playbook_command(
    ansible_playbook: str, playbook: Path, app_settings: AppSettings
) -> List[str]:
    """Assemble the ansible-playbook command line for a local run."""
    extra_vars = {
        "bootstrap_home": str(app_settings.bootstrap_home),
        "dotfiles_home": str(app_settings.dotfiles_home),
        "dotfiles_enabled": app_settings.dotfiles_configured,
    }
    command = [
        ansible_playbook,
        "-i", app_settings.playbook.inventory,
        "-c", "local",
        "--extra-vars", json.dumps(extra_vars, sort_keys=True),
    ]
    if app_settings.playbook.check_mode:
        command.append("--check")
    command.extend(app_settings.playbook.extra_args)
    command.append(str(playbook))
    return command


def run_ansible_playbook(
    playbook: Path,
    context: dict,
    app_settings: AppSettings,
    cwd: Optional[Path] = None,
) -> None:
    """
    Run one playbook with output streamed to the terminal.

    Raises:
        MissingPrerequisiteError: ansible-playbook is not installed.
        PlaybookError: The playbook exited non-zero.
    """
    ansible_playbook = find_ansible_playbook(context.get("brew_path"))
    if not ansible_playbook:
        raise MissingPrerequisiteError(
            "ansible-playbook was not found; is the 'ansible' formula installed?",
            step="ansible",
        )
    command = build_playbook_command(ansible_playbook, playbook, app_settings)
    try:
        run_command(
            command,
            app_settings,
            current_logger=logger,
            cwd=str(cwd) if cwd else None,
        )
    except subprocess.CalledProcessError as e:
        raise PlaybookError(
            f"Playbook {playbook} failed with exit code {e.returncode}.",
            step=playbook.name,
        ) from e


def update_packages(context: dict, app_settings: AppSettings, **kwargs) -> None:
    """Refresh Homebrew itself and upgrade everything it has installed."""
    manager = _homebrew(context, app_settings)
    manager.update()
    manager.upgrade()


def ensure_baseline_taps(context: dict, app_settings: AppSettings, **kwargs) -> List[str]:
    symbols = get_symbols(app_settings)
    if not app_settings.brew.taps:
        logger.info(f"{symbols.get('skip', '')} No extra taps configured.")
        return []
    manager = _homebrew(context, app_settings)
    added = manager.tap(list(app_settings.brew.taps))
    for tap_name in added:
        record_change(context, f"tapped {tap_name}")
    if not added:
        logger.info(f"{symbols.get('success', '')} Baseline taps already present.")
    return added


@log_performance
def run_entry_playbook(context: dict, app_settings: AppSettings, **kwargs) -> None:
    """Run the fixed top-level playbook from the bootstrap home."""
    playbook = app_settings.entry_playbook_path
    if not playbook.is_file():
        raise PlaybookError(
            f"Entry playbook {playbook} not found in the bootstrap repository.",
            step="entry playbook",
        )
    run_ansible_playbook(playbook, context, app_settings, cwd=app_settings.bootstrap_home)


def apply_package_manifest(
    manifest: Path, context: dict, app_settings: AppSettings
) -> bool:
    """
    Install whatever the Brewfile lists that is not installed yet.

    Returns:
        True when `brew bundle install` ran, False when already satisfied.
    """
    symbols = get_symbols(app_settings)
    manager = _homebrew(context, app_settings)
    if manager.bundle_satisfied(manifest):
        logger.info(f"{symbols.get('success', '')} Package manifest {manifest} already satisfied.")
        return False
    manager.bundle_install(manifest)
    record_change(context, f"applied package manifest {manifest}")
    return True


def run_optional_steps(context: dict, app_settings: AppSettings, **kwargs) -> List[str]:
    """
    Run the dotfiles-provided steps whose files exist right now.

    Missing files are not errors; the step is simply skipped.

    Returns:
        The values of the steps that ran.
    """
    symbols = get_symbols(app_settings)
    dotfiles_available = context.get("dotfiles_available", False)
    steps = enabled_optional_steps(app_settings, dotfiles_available)

    if not app_settings.dotfiles_configured:
        logger.info(f"{symbols.get('skip', '')} DOTFILES_URL not set; no optional steps enabled.")
    elif not dotfiles_available:
        logger.warning(
            f"{symbols.get('skip', '')} Dotfiles repository unavailable in this run; skipping optional steps."
        )
    else:
        for step in OptionalStep:
            if step not in steps:
                logger.info(
                    f"{symbols.get('skip', '')} No {step.label} at {step.path(app_settings)}; skipping."
                )

    for step in steps:
        path = step.path(app_settings)
        logger.info(f"{symbols.get('step', '')} Running optional step '{step.label}' from {path}")
        if step is OptionalStep.USER_PLAYBOOK:
            run_ansible_playbook(path, context, app_settings, cwd=app_settings.dotfiles_home)
        elif step is OptionalStep.PACKAGE_MANIFEST:
            apply_package_manifest(path, context, app_settings)

    return [step.value for step in steps]


def add_playbook_tasks(orchestrator: Orchestrator) -> None:
    """Queue the playbook run's tasks; every one of them is fatal."""
    orchestrator.add_task("Package Update", update_packages)
    orchestrator.add_task("Baseline Taps", ensure_baseline_taps)
    orchestrator.add_task("Entry Playbook", run_entry_playbook)
    orchestrator.add_task("Optional Dotfiles Steps", run_optional_steps)
