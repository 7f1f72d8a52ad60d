# bootstrap/fetcher.py
# -*- coding: utf-8 -*-
"""
Clones or updates the bootstrap and dotfiles repositories.

The two fetches are independent: the bootstrap repository is mandatory and
its failure halts the run, while the dotfiles repository is optional and its
failure only disables the steps that depend on it.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional

from bootstrap.prober import is_git_clone
from common.command_utils import get_symbols, log_bootstrap, run_command
from common.errors import FetchError
from common.orchestrator import record_change
from settings.config_models import AppSettings

module_logger = logging.getLogger(__name__)

CLONED = "cloned"
UPDATED = "updated"
UNCHANGED = "unchanged"
SKIPPED = "skipped"


def _head_revision(
    path: Path, app_settings: AppSettings, logger: logging.Logger
) -> Optional[str]:
    result = run_command(
        ["git", "-C", str(path), "rev-parse", "HEAD"],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=logger,
    )
    return result.stdout.strip() if result.returncode == 0 else None


def ensure_repository(
    url: str,
    path: Path,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Ensure a clone of `url` exists at `path` and is up to date.

    An existing clone is fast-forwarded with `git pull --ff-only`; a missing
    one is cloned. A directory that exists but is not a clone is left alone.

    Args:
        url: Repository URL; validated only by git itself.
        path: Target directory.
        app_settings: The application settings.
        current_logger: Optional logger instance.

    Returns:
        "cloned", "updated" or "unchanged".

    Raises:
        FetchError: git failed, or `path` is a file, an unreadable directory or
            a non-empty directory that is not a clone.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    path = Path(path)

    if is_git_clone(path):
        log_bootstrap(
            f"{symbols.get('info', 'ℹ️')} Updating existing clone at {path}",
            "info",
            logger_to_use,
            app_settings,
        )
        try:
            before = _head_revision(path, app_settings, logger_to_use)
            run_command(
                ["git", "-C", str(path), "pull", "--ff-only"],
                app_settings,
                current_logger=logger_to_use,
            )
            after = _head_revision(path, app_settings, logger_to_use)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise FetchError(f"Could not update {path}: {e}", url=url) from e
        return UPDATED if before != after else UNCHANGED

    if path.exists():
        if not path.is_dir():
            raise FetchError(
                f"{path} exists but is not a directory; refusing to overwrite it.",
                url=url,
            )
        try:
            occupied = any(path.iterdir())
        except OSError as e:
            raise FetchError(f"Could not inspect {path}: {e}", url=url) from e
        if occupied:
            raise FetchError(
                f"{path} exists but is not a git clone; refusing to overwrite it.",
                url=url,
            )

    log_bootstrap(
        f"{symbols.get('info', 'ℹ️')} Cloning {url} into {path}",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        run_command(
            ["git", "clone", url, str(path)],
            app_settings,
            current_logger=logger_to_use,
        )
    except (subprocess.CalledProcessError, FileNotFoundError, OSError) as e:
        raise FetchError(f"Could not clone {url}: {e}", url=url) from e
    return CLONED


def _record_fetch(context: dict, outcome: str, label: str, path: Path) -> None:
    if outcome == CLONED:
        record_change(context, f"cloned {label} into {path}")
    elif outcome == UPDATED:
        record_change(context, f"updated {label} at {path}")


def fetch_bootstrap_repository(context: dict, app_settings: AppSettings, **kwargs) -> str:
    """Clone or update the bootstrap repository. Failure is fatal."""
    outcome = ensure_repository(
        app_settings.bootstrap_repo_url, app_settings.bootstrap_home, app_settings
    )
    _record_fetch(context, outcome, "bootstrap repository", app_settings.bootstrap_home)
    return outcome


def fetch_dotfiles_repository(context: dict, app_settings: AppSettings, **kwargs) -> str:
    """
    Clone or update the dotfiles repository when DOTFILES_URL is set.

    `context["dotfiles_available"]` becomes True only once the clone is
    known to be in place for this run; the orchestrator runs this task as
    non-fatal so an exception leaves the flag False.
    """
    symbols = get_symbols(app_settings)
    context["dotfiles_available"] = False

    if not app_settings.dotfiles_configured:
        log_bootstrap(
            f"{symbols.get('skip', '⏭️')} DOTFILES_URL not set; skipping dotfiles repository.",
            "info",
            module_logger,
            app_settings,
        )
        return SKIPPED

    outcome = ensure_repository(
        app_settings.dotfiles_url, app_settings.dotfiles_home, app_settings
    )
    _record_fetch(context, outcome, "dotfiles repository", app_settings.dotfiles_home)
    context["dotfiles_available"] = True
    return outcome
