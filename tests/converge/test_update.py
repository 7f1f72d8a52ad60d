# tests/converge/test_update.py
# -*- coding: utf-8 -*-
import pytest

from common.errors import MissingPrerequisiteError
from converge import update

BREW = "/usr/local/bin/brew"


def test_locate_homebrew_sets_context(mocker, app_settings):
    mocker.patch("converge.update.find_brew", return_value=BREW)
    context = {}

    assert update.locate_homebrew(context, app_settings) == BREW
    assert context["brew_path"] == BREW


def test_locate_homebrew_never_installs(mocker, app_settings):
    mocker.patch("converge.update.find_brew", return_value=None)

    with pytest.raises(MissingPrerequisiteError, match="Run the full bootstrap first"):
        update.locate_homebrew({}, app_settings)


def test_run_update_only_touches_packages(mocker, app_settings, mock_logger):
    mocker.patch("converge.update.find_brew", return_value=BREW)
    manager_cls = mocker.patch("converge.playbook_runner.HomebrewManager")
    fetch = mocker.patch("bootstrap.fetcher.run_command")
    playbook = mocker.patch("converge.playbook_runner.run_command")

    success, context = update.run_update(app_settings, mock_logger)

    assert success is True
    assert context["brew_path"] == BREW
    manager_cls.assert_called_once()
    manager_cls.return_value.update.assert_called_once_with()
    manager_cls.return_value.upgrade.assert_called_once_with()
    fetch.assert_not_called()
    playbook.assert_not_called()
    assert context["changes"] == []


def test_run_update_without_homebrew_exits(mocker, app_settings, mock_logger):
    mocker.patch("converge.update.find_brew", return_value=None)
    manager_cls = mocker.patch("converge.playbook_runner.HomebrewManager")

    with pytest.raises(SystemExit) as excinfo:
        update.run_update(app_settings, mock_logger)

    assert excinfo.value.code == 1
    manager_cls.assert_not_called()
