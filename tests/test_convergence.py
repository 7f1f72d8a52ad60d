# tests/test_convergence.py
# -*- coding: utf-8 -*-
"""
End-to-end runs of the bootstrap and update sequences against a simulated
workstation.

`FakeMachine` stands in for every external command the tool shells out to
(xcode-select, the Homebrew installer, brew, git and ansible-playbook) and
keeps just enough state to answer the read-only checks the way the real
tools would. Every state-changing command is appended to `mutations`.
"""

import logging
import re
import subprocess
from pathlib import Path

import pytest

from bootstrap.orchestrator import run_bootstrap
from converge.update import run_update

BREW = "/opt/homebrew/bin/brew"
ANSIBLE = "/opt/homebrew/bin/ansible-playbook"
DOTFILES_URL = "https://example.com/me/dotfiles.git"
REV_FILE = "FAKE_HEAD"

ENTRY_PLAYBOOK = "- hosts: localhost\n  tasks: []\n"
# Official taps whose commands now ship with Homebrew itself.
DEPRECATED_TAPS = {"homebrew/bundle", "homebrew/services"}


class FakeMachine:
    def __init__(self):
        self.command_line_tools = False
        self.homebrew = False
        self.formulae = set()
        self.outdated = set()
        self.taps = {"homebrew/core"}
        self.remotes = {}
        self.unreachable = set()
        self.clones = {}
        self.failing_playbooks = set()
        self.commands = []
        self.mutations = []
        self.playbooks = []

    # -- remote repositories -------------------------------------------------

    def publish(self, url, files, rev):
        self.remotes[url] = {"rev": rev, "files": dict(files)}

    def _checkout(self, path, url):
        remote = self.remotes[url]
        for relative, text in remote["files"].items():
            target = path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        (path / ".git").mkdir(parents=True, exist_ok=True)
        (path / ".git" / REV_FILE).write_text(remote["rev"], encoding="utf-8")

    # -- executable lookup ---------------------------------------------------

    def which(self, name, *args, **kwargs):
        if name == "brew" and self.homebrew:
            return BREW
        if name == "ansible-playbook" and "ansible" in self.formulae:
            return ANSIBLE
        return None

    def is_executable(self, path):
        return self.which(Path(path).name) == path

    # -- command dispatch ----------------------------------------------------

    def run(self, command, app_settings=None, check=True, shell=False,
            capture_output=False, current_logger=None, cwd=None, **kwargs):
        args = command.split() if isinstance(command, str) else [str(a) for a in command]
        self.commands.append(args)
        returncode, stdout = self._dispatch(command if shell else args)
        if check and returncode != 0:
            raise subprocess.CalledProcessError(returncode, args, output=stdout, stderr="")
        return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr="")

    def _mutate(self, description):
        self.mutations.append(description)

    def _dispatch(self, command):
        if isinstance(command, str):
            if "curl" in command and "install.sh" in command:
                self.homebrew = True
                self._mutate("install homebrew")
                return 0, ""
            raise AssertionError(f"unexpected shell command: {command}")

        head = command[0]
        if head == "xcode-select":
            if command[1] == "-p":
                return (0, "/Library/Developer/CommandLineTools\n") if self.command_line_tools else (2, "")
            self.command_line_tools = True
            self._mutate("install command-line tools")
            return 0, ""
        if head == BREW:
            return self._brew(command[1:])
        if head == "git":
            return self._git(command[1:])
        if head == ANSIBLE:
            playbook = command[-1]
            if not Path(playbook).is_file():
                return 1, ""
            self.playbooks.append(playbook)
            return (2, "") if playbook in self.failing_playbooks else (0, "")
        raise AssertionError(f"unexpected command: {command}")

    def _brew(self, args):
        assert self.homebrew, "brew invoked before it was installed"
        verb = args[0]
        if verb == "list":
            formula = args[-1]
            return (0, f"{formula} 1.0\n") if formula in self.formulae else (1, "")
        if verb == "install":
            for formula in args[1:]:
                self.formulae.add(formula)
                self._mutate(f"install {formula}")
            return 0, ""
        if verb == "update":
            return 0, "Already up-to-date.\n"
        if verb == "upgrade":
            for formula in sorted(self.outdated):
                self._mutate(f"upgrade {formula}")
            self.outdated.clear()
            return 0, ""
        if verb == "tap":
            if len(args) == 1:
                return 0, "".join(f"{t}\n" for t in sorted(self.taps))
            if args[1] in DEPRECATED_TAPS:
                return 1, ""
            self.taps.add(args[1])
            self._mutate(f"tap {args[1]}")
            return 0, ""
        if verb == "bundle":
            manifest = Path(args[-1].split("=", 1)[1])
            wanted = re.findall(r'brew "([^"]+)"', manifest.read_text(encoding="utf-8"))
            missing = [f for f in wanted if f not in self.formulae]
            if args[1] == "check":
                return (1, "") if missing else (0, "")
            for formula in missing:
                self.formulae.add(formula)
                self._mutate(f"install {formula}")
            return 0, ""
        raise AssertionError(f"unexpected brew command: {args}")

    def _git(self, args):
        if args[0] == "clone":
            url, path = args[1], Path(args[2])
            if url in self.unreachable or url not in self.remotes:
                return 128, ""
            self._checkout(path, url)
            self.clones[str(path)] = url
            self._mutate(f"clone {url}")
            return 0, ""
        path = Path(args[1])
        if args[2] == "rev-parse":
            return 0, (path / ".git" / REV_FILE).read_text(encoding="utf-8") + "\n"
        if args[2] == "pull":
            url = self.clones[str(path)]
            if url in self.unreachable:
                return 1, ""
            local = (path / ".git" / REV_FILE).read_text(encoding="utf-8")
            if local != self.remotes[url]["rev"]:
                self._checkout(path, url)
                self._mutate(f"pull {url}")
            return 0, ""
        raise AssertionError(f"unexpected git command: {args}")


@pytest.fixture
def machine(mocker, app_settings):
    fake = FakeMachine()
    fake.publish(
        app_settings.bootstrap_repo_url,
        {"playbooks/main.yml": ENTRY_PLAYBOOK},
        rev="b1",
    )
    for module in (
        "bootstrap.homebrew",
        "bootstrap.prober",
        "bootstrap.installer",
        "bootstrap.fetcher",
        "converge.playbook_runner",
    ):
        mocker.patch(f"{module}.run_command", side_effect=fake.run)
    mocker.patch("bootstrap.prober.shutil.which", side_effect=fake.which)
    mocker.patch("bootstrap.prober._is_executable", side_effect=fake.is_executable)
    mocker.patch("bootstrap.prober.platform.system", return_value="Darwin")
    return fake


@pytest.fixture
def logger():
    return logging.getLogger("convergence-test")


def _git_commands(fake):
    return [c for c in fake.commands if c[0] == "git"]


def test_fresh_machine_converges_then_rerun_changes_nothing(machine, dotfiles_settings, logger):
    machine.publish(
        DOTFILES_URL,
        {"ansible/playbook.yml": "- hosts: localhost\n", "Brewfile": 'brew "jq"\n'},
        rev="d1",
    )

    success, context = run_bootstrap(dotfiles_settings, logger)

    assert success is True
    assert machine.command_line_tools and machine.homebrew
    assert {"git", "ansible", "jq"} <= machine.formulae
    assert machine.taps == {"homebrew/core"}
    assert not [c for c in machine.commands if c[:2] == [BREW, "tap"] and len(c) > 2]
    assert machine.playbooks == [
        str(dotfiles_settings.entry_playbook_path),
        str(dotfiles_settings.user_playbook_path),
    ]
    assert "installed homebrew" in context["changes"]
    assert f"applied package manifest {dotfiles_settings.package_manifest_path}" in context["changes"]

    machine.mutations.clear()
    machine.playbooks.clear()

    success, context = run_bootstrap(dotfiles_settings, logger)

    assert success is True
    assert machine.mutations == []
    assert context["changes"] == []
    # The playbooks are still applied; they converge on their own.
    assert len(machine.playbooks) == 2


def test_configured_taps_added_once(machine, app_settings, logger):
    app_settings.brew.taps = ["hashicorp/tap"]

    success, context = run_bootstrap(app_settings, logger)

    assert success is True
    assert "hashicorp/tap" in machine.taps
    assert "tapped hashicorp/tap" in context["changes"]

    machine.mutations.clear()
    success, context = run_bootstrap(app_settings, logger)

    assert success is True
    assert machine.mutations == []
    assert context["changes"] == []


def test_deprecated_tap_in_settings_is_fatal(machine, app_settings, logger):
    app_settings.brew.taps = ["homebrew/bundle"]

    with pytest.raises(SystemExit) as excinfo:
        run_bootstrap(app_settings, logger)

    assert excinfo.value.code == 1
    assert machine.playbooks == []


def test_unset_url_uses_baseline_only(machine, app_settings, logger):
    machine.publish(DOTFILES_URL, {"Brewfile": 'brew "jq"\n'}, rev="d1")

    success, context = run_bootstrap(app_settings, logger)

    assert success is True
    assert (app_settings.bootstrap_home / ".git").is_dir()
    assert not app_settings.dotfiles_home.exists()
    assert all(DOTFILES_URL not in c for c in _git_commands(machine))
    assert machine.playbooks == [str(app_settings.entry_playbook_path)]
    assert "jq" not in machine.formulae
    assert context["dotfiles_available"] is False


def test_user_playbook_picked_up_on_next_run(machine, dotfiles_settings, logger):
    machine.publish(DOTFILES_URL, {"README.md": "dotfiles\n"}, rev="d1")

    run_bootstrap(dotfiles_settings, logger)
    assert machine.playbooks == [str(dotfiles_settings.entry_playbook_path)]

    machine.publish(
        DOTFILES_URL,
        {"README.md": "dotfiles\n", "ansible/playbook.yml": "- hosts: localhost\n"},
        rev="d2",
    )
    machine.playbooks.clear()

    success, context = run_bootstrap(dotfiles_settings, logger)

    assert success is True
    assert machine.playbooks == [
        str(dotfiles_settings.entry_playbook_path),
        str(dotfiles_settings.user_playbook_path),
    ]
    assert f"updated dotfiles repository at {dotfiles_settings.dotfiles_home}" in context["changes"]


def test_unreachable_dotfiles_only_disables_optional_steps(machine, dotfiles_settings, logger):
    machine.unreachable.add(DOTFILES_URL)

    success, context = run_bootstrap(dotfiles_settings, logger)

    assert success is False
    assert context["dotfiles_available"] is False
    assert machine.homebrew and "ansible" in machine.formulae
    assert (dotfiles_settings.bootstrap_home / ".git").is_dir()
    assert machine.playbooks == [str(dotfiles_settings.entry_playbook_path)]


def test_unreachable_bootstrap_repository_is_fatal(machine, dotfiles_settings, logger):
    machine.unreachable.add(dotfiles_settings.bootstrap_repo_url)
    machine.publish(DOTFILES_URL, {"Brewfile": 'brew "jq"\n'}, rev="d1")

    with pytest.raises(SystemExit) as excinfo:
        run_bootstrap(dotfiles_settings, logger)

    assert excinfo.value.code == 1
    assert machine.playbooks == []
    assert all(DOTFILES_URL not in c for c in _git_commands(machine))


def test_partial_previous_run_is_completed(machine, app_settings, logger):
    # Homebrew survived an earlier run but the developer tools did not.
    machine.homebrew = True
    machine.formulae.add("git")

    success, context = run_bootstrap(app_settings, logger)

    assert success is True
    assert machine.command_line_tools is True
    assert "installed command-line developer tools" in context["changes"]
    assert "installed homebrew" not in context["changes"]
    assert context["changes"].count("installed formula ansible") == 1
    assert "installed formula git" not in context["changes"]


def test_failing_playbook_halts_run(machine, dotfiles_settings, logger):
    machine.publish(
        DOTFILES_URL,
        {"ansible/playbook.yml": "- hosts: localhost\n", "Brewfile": 'brew "jq"\n'},
        rev="d1",
    )
    machine.failing_playbooks.add(str(dotfiles_settings.user_playbook_path))

    with pytest.raises(SystemExit):
        run_bootstrap(dotfiles_settings, logger)

    # The manifest comes after the user playbook and never runs.
    assert "jq" not in machine.formulae


def test_update_only_refreshes_packages(machine, dotfiles_settings, logger):
    machine.publish(DOTFILES_URL, {"Brewfile": 'brew "jq"\n'}, rev="d1")
    run_bootstrap(dotfiles_settings, logger)
    machine.publish(DOTFILES_URL, {"Brewfile": 'brew "jq"\nbrew "wget"\n'}, rev="d2")
    machine.outdated.add("jq")
    machine.commands.clear()
    machine.mutations.clear()
    machine.playbooks.clear()

    success, _ = run_update(dotfiles_settings, logger)

    assert success is True
    assert _git_commands(machine) == []
    assert machine.playbooks == []
    assert [c[1] for c in machine.commands] == ["update", "upgrade"]
    assert machine.mutations == ["upgrade jq"]
    assert "wget" not in machine.formulae


def test_update_without_homebrew_exits(machine, app_settings, logger):
    with pytest.raises(SystemExit) as excinfo:
        run_update(app_settings, logger)

    assert excinfo.value.code == 1
    assert machine.commands == []
