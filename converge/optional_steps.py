# converge/optional_steps.py
# -*- coding: utf-8 -*-
"""
Optional, dotfiles-provided steps of a playbook run.

Each step is enabled by the presence of a file in the dotfiles home,
checked at run time on every invocation. Adding the file later causes it
to be picked up on the next run without any other configuration change.
"""

import enum
from pathlib import Path
from typing import List

from settings.config_models import AppSettings


class OptionalStep(enum.Enum):
    USER_PLAYBOOK = "user_playbook"
    PACKAGE_MANIFEST = "package_manifest"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")

    def path(self, app_settings: AppSettings) -> Path:
        if self is OptionalStep.USER_PLAYBOOK:
            return app_settings.user_playbook_path
        return app_settings.package_manifest_path


def enabled_optional_steps(
    app_settings: AppSettings, dotfiles_available: bool
) -> List[OptionalStep]:
    """
    Return the optional steps that should run, in declaration order.

    Nothing is enabled unless DOTFILES_URL is configured and the dotfiles
    clone is available in this run; then a step is enabled when its file
    exists.
    """
    if not (app_settings.dotfiles_configured and dotfiles_available):
        return []
    return [step for step in OptionalStep if step.path(app_settings).is_file()]
