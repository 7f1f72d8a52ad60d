# bootstrap/homebrew.py
# -*- coding: utf-8 -*-
import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Set, Union

from common.command_utils import run_command
from common.errors import PackageManagerError
from settings.config_models import AppSettings


class HomebrewManager:
    """
    A centralized manager for Homebrew operations using the `brew` CLI.

    Every mutating method checks the current state first and only acts on
    what is missing, so repeated calls converge without further changes.
    """

    def __init__(
        self,
        brew_path: Union[str, Path],
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the HomebrewManager.
        Args:
            brew_path: Absolute path of the `brew` executable.
            app_settings: The application settings.
            logger: An optional logging object.
        """
        self.brew = str(brew_path)
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(__name__)

    @property
    def bin_dir(self) -> Path:
        """Directory holding `brew` and the executables of installed formulae."""
        return Path(self.brew).parent

    def _brew(
        self, *args: str, check: bool = True, capture_output: bool = False
    ) -> subprocess.CompletedProcess:
        return run_command(
            [self.brew, *args],
            self.app_settings,
            check=check,
            capture_output=capture_output,
            current_logger=self.logger,
        )

    def update(self) -> None:
        """Fetches the newest Homebrew and formula definitions via 'brew update'."""
        self.logger.info("Updating Homebrew via 'brew update'...")
        try:
            self._brew("update")
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise PackageManagerError(f"'brew update' failed: {e}", step="brew update") from e
        self.logger.info("Homebrew updated successfully.")

    def upgrade(self) -> None:
        """Upgrades outdated formulae and casks via 'brew upgrade'."""
        self.logger.info("Upgrading installed packages via 'brew upgrade'...")
        try:
            self._brew("upgrade")
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise PackageManagerError(f"'brew upgrade' failed: {e}", step="brew upgrade") from e
        self.logger.info("Installed packages upgraded successfully.")

    def is_installed(self, formula: str) -> bool:
        result = self._brew(
            "list", "--formula", "--versions", formula,
            check=False, capture_output=True,
        )
        return result.returncode == 0 and bool(result.stdout.strip())

    def install(self, formulae: Union[List[str], str]) -> List[str]:
        """
        Installs the formulae that are not installed yet.

        Already installed formulae are left untouched; they are never
        upgraded on this path.

        Args:
            formulae: A single formula name or a list of names.

        Returns:
            The formulae that were actually installed.
        """
        if not isinstance(formulae, list):
            formulae = [formulae]

        missing = []
        for formula in formulae:
            if self.is_installed(formula):
                self.logger.info(
                    f"Formula '{formula}' is already installed. Skipping."
                )
            else:
                self.logger.info(f"Marking formula for installation: {formula}")
                missing.append(formula)

        if not missing:
            self.logger.info("All requested formulae are already installed.")
            return []

        self.logger.info(f"Installing formulae: {', '.join(missing)}")
        try:
            self._brew("install", *missing)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise PackageManagerError(
                f"Failed to install {', '.join(missing)}: {e}", step="brew install"
            ) from e
        return missing

    def tapped(self) -> Set[str]:
        """Returns the names of currently tapped repositories (lower-cased)."""
        try:
            result = self._brew("tap", capture_output=True)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise PackageManagerError(f"Could not list taps: {e}", step="brew tap") from e
        return {
            line.strip().lower()
            for line in (result.stdout or "").splitlines()
            if line.strip()
        }

    def tap(self, taps: List[str]) -> List[str]:
        """
        Taps every repository in `taps` that is not tapped yet.

        Returns:
            The taps that were added.
        """
        if not taps:
            return []
        present = self.tapped()
        added = []
        for tap_name in taps:
            if tap_name.lower() in present:
                self.logger.info(f"Tap '{tap_name}' is already present. Skipping.")
                continue
            try:
                self._brew("tap", tap_name)
            except (subprocess.CalledProcessError, FileNotFoundError) as e:
                raise PackageManagerError(
                    f"Failed to tap '{tap_name}': {e}", step="brew tap"
                ) from e
            added.append(tap_name)
        return added

    def bundle_satisfied(self, manifest: Union[str, Path]) -> bool:
        """True when everything in the Brewfile is already installed."""
        result = self._brew(
            "bundle", "check", "--no-upgrade", f"--file={manifest}",
            check=False, capture_output=True,
        )
        return result.returncode == 0

    def bundle_install(self, manifest: Union[str, Path]) -> None:
        self.logger.info(f"Applying package manifest {manifest}...")
        try:
            self._brew("bundle", "install", f"--file={manifest}")
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise PackageManagerError(
                f"'brew bundle' failed for {manifest}: {e}", step="brew bundle"
            ) from e
