# bootstrap/orchestrator.py
# -*- coding: utf-8 -*-
"""
This module defines the full bootstrap sequence for a workstation.

The primary function, `run_bootstrap`, queues the steps on a centralized
orchestrator in a fixed linear order:

    Prober/Installer -> Repository Fetcher -> Playbook Runner

Every step re-checks its own precondition, so an interrupted run can simply
be started again. All steps are fatal except the dotfiles fetch: a dotfiles
repository that cannot be fetched only disables the optional steps that
depend on it.
"""

import logging
from typing import Optional, Tuple

from bootstrap.fetcher import fetch_bootstrap_repository, fetch_dotfiles_repository
from bootstrap.installer import (
    ensure_command_line_tools,
    ensure_dependencies,
    ensure_homebrew,
)
from common.command_utils import get_symbols
from common.orchestrator import Orchestrator
from converge.playbook_runner import add_playbook_tasks
from settings.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def build_bootstrap_orchestrator(
    app_settings: AppSettings, logger: Optional[logging.Logger] = None
) -> Orchestrator:
    orchestrator = Orchestrator(app_settings, logger or module_logger)
    orchestrator.context["dotfiles_available"] = False

    orchestrator.add_task("Command-line Developer Tools", ensure_command_line_tools)
    orchestrator.add_task("Homebrew", ensure_homebrew)
    orchestrator.add_task("Homebrew Dependencies", ensure_dependencies)
    orchestrator.add_task("Bootstrap Repository", fetch_bootstrap_repository)
    orchestrator.add_task("Dotfiles Repository", fetch_dotfiles_repository, fatal=False)
    add_playbook_tasks(orchestrator)
    return orchestrator


def run_bootstrap(
    app_settings: AppSettings, logger: Optional[logging.Logger] = None
) -> Tuple[bool, dict]:
    """
    Configures and executes the full bootstrap sequence.

    Args:
        app_settings: The resolved application settings.
        logger: An optional logger instance.

    Returns:
        A tuple containing:
        - success (bool): False if the non-fatal dotfiles fetch failed.
          Fatal failures never return; they exit the process with status 1.
        - context (dict): The orchestration context, including the list of
          changes made during this run under "changes".
    """
    effective_logger = logger or module_logger
    symbols = get_symbols(app_settings)

    effective_logger.info(
        f"{symbols.get('rocket', '')} Starting workstation bootstrap..."
    )
    orchestrator = build_bootstrap_orchestrator(app_settings, effective_logger)
    success = orchestrator.run()

    changes = orchestrator.context.get("changes", [])
    if changes:
        effective_logger.info(
            f"{symbols.get('success', '')} Bootstrap finished. Changes made in this run: {'; '.join(changes)}"
        )
    else:
        effective_logger.info(
            f"{symbols.get('success', '')} Bootstrap finished. Everything was already in place; "
            "no changes were made by this run."
        )
    return success, orchestrator.context
