# converge/update.py
# -*- coding: utf-8 -*-
"""
Update entry point: refresh installed software without a full bootstrap.

Only the package-update portion of a playbook run is performed. No
repository is cloned or pulled and no playbook is executed, so this is safe
to invoke at any time after the initial setup.
"""

import logging
from typing import Optional, Tuple

from bootstrap.prober import find_brew
from common.command_utils import get_symbols
from common.errors import MissingPrerequisiteError
from common.orchestrator import Orchestrator
from converge.playbook_runner import update_packages
from settings.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def locate_homebrew(context: dict, app_settings: AppSettings, **kwargs) -> str:
    """Find `brew` without installing it."""
    brew_path = find_brew()
    if not brew_path:
        raise MissingPrerequisiteError(
            "Homebrew is not installed. Run the full bootstrap first.",
            step="homebrew",
        )
    context["brew_path"] = brew_path
    return brew_path


def run_update(
    app_settings: AppSettings, logger: Optional[logging.Logger] = None
) -> Tuple[bool, dict]:
    """
    Run the package-update sequence.

    Returns:
        A tuple of (success, orchestration context).
    """
    effective_logger = logger or module_logger
    symbols = get_symbols(app_settings)
    effective_logger.info(f"{symbols.get('rocket', '')} Updating installed packages...")

    orchestrator = Orchestrator(app_settings, effective_logger)
    orchestrator.add_task("Locate Homebrew", locate_homebrew)
    orchestrator.add_task("Package Update", update_packages)

    success = orchestrator.run()
    return success, orchestrator.context
