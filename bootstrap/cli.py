# bootstrap/cli.py
# -*- coding: utf-8 -*-
import logging
from typing import Any, Dict, Optional

import click

from bootstrap.orchestrator import run_bootstrap
from bootstrap.prober import is_git_clone, probe_environment
from common.logging_config import setup_logging
from converge.optional_steps import OptionalStep, enabled_optional_steps
from converge.update import run_update
from settings.config_loader import load_app_settings
from settings.config_models import AppSettings

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML settings file (default: $WORKSTATION_CONFIG or ~/.config/workstation/config.yaml).",
)
verbose_option = click.option(
    "-v", "--verbose", is_flag=True, help="Enable debug output."
)


def _prepare(
    service_name: str,
    config_path: Optional[str],
    overrides: Dict[str, Any],
    verbose: bool,
) -> AppSettings:
    """Load settings and configure logging for one command invocation."""
    app_settings = load_app_settings(cli_overrides=overrides, config_file_path=config_path)
    setup_logging(
        service_name,
        log_level="DEBUG" if verbose else app_settings.log_level,
        log_file_path=str(app_settings.log_file) if app_settings.log_file else None,
        log_prefix=app_settings.log_prefix,
        symbols=app_settings.symbols,
    )
    return app_settings


@click.command(name="run")
@click.option(
    "--dotfiles-url",
    envvar="DOTFILES_URL",
    default=None,
    help="Dotfiles repository to clone (default: $DOTFILES_URL). Unset skips all dotfiles steps.",
)
@click.option(
    "--check", "check_mode", is_flag=True, default=None,
    help="Run playbooks in Ansible check mode.",
)
@click.option(
    "--log-file", type=click.Path(dir_okay=False), default=None,
    help="Also write JSON-structured logs to this file.",
)
@config_option
@verbose_option
def bootstrap_command(dotfiles_url, check_mode, log_file, config_path, verbose):
    """
    Bootstrap this workstation.

    Installs the command-line developer tools, Homebrew and Ansible when
    missing, clones or updates the bootstrap and dotfiles repositories, then
    runs the playbook. Safe to re-run at any time.
    """
    overrides = {
        "dotfiles_url": dotfiles_url,
        "check_mode": check_mode or None,
        "log_file": log_file,
    }
    app_settings = _prepare("bootstrap", config_path, overrides, verbose)
    success, _ = run_bootstrap(app_settings, logging.getLogger("bootstrap"))
    if not success:
        click.echo(
            "Bootstrap completed, but the dotfiles repository could not be fetched; "
            "dotfiles steps were skipped.",
            err=True,
        )


@click.command(name="update")
@config_option
@verbose_option
def update_command(config_path, verbose):
    """
    Update Homebrew and upgrade installed packages.

    Does not clone or pull any repository and does not run playbooks.
    """
    app_settings = _prepare("update", config_path, {}, verbose)
    run_update(app_settings, logging.getLogger("update"))


@click.command(name="status")
@config_option
def status_command(config_path):
    """Report what is installed and which optional steps are enabled."""
    app_settings = load_app_settings(config_file_path=config_path)
    setup_logging("status", log_level="WARNING", symbols=app_settings.symbols)
    symbols = app_settings.symbols

    for result in probe_environment(app_settings):
        if not result.applicable:
            marker = symbols.get("skip", "-")
        elif result.present:
            marker = symbols.get("success", "+")
        else:
            marker = symbols.get("error", "x")
        detail = f" ({result.detail})" if result.detail else ""
        click.echo(f"{marker} {result.name}{detail}")

    dotfiles_cloned = is_git_clone(app_settings.dotfiles_home)
    enabled = enabled_optional_steps(app_settings, dotfiles_cloned)
    for step in OptionalStep:
        state = "enabled" if step in enabled else "disabled"
        click.echo(f"  {step.label}: {state} ({step.path(app_settings)})")


@click.group()
def cli():
    """
    Converge a workstation: package manager, dotfiles and playbook.
    """
    pass


cli.add_command(bootstrap_command)
cli.add_command(update_command)
cli.add_command(status_command)
