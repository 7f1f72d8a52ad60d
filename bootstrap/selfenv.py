# bootstrap/selfenv.py
# -*- coding: utf-8 -*-
"""
Prepares the tool's own Python environment when run from a source checkout.

Imports only the standard library: it runs before click, pydantic and
PyYAML are known to be importable.
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

SKIP_ENV_VAR = "WORKSTATION_SKIP_VENV"


def find_project_root(start: Optional[Path] = None) -> Optional[Path]:
    """Walk up from `start` (default: this file) to the directory holding pyproject.toml."""
    current = (start or Path(__file__)).resolve()
    for candidate in [current, *current.parents]:
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return None


def _run_or_exit(command: List[str], failure_title: str, cwd: Optional[Path] = None) -> None:
    try:
        subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
            cwd=cwd,
        )
    except subprocess.CalledProcessError as e:
        print(f"--- {failure_title} ---")
        print(f"Command failed: {' '.join(command)}")
        print("Exit Code:", e.returncode)
        print("\n--- STDOUT ---\n", e.stdout)
        print("\n--- STDERR ---\n", e.stderr)
        print("-" * (len(failure_title) + 8))
        sys.exit(1)


def ensure_venv_and_dependencies(module: str = "bootstrap") -> None:
    """
    Ensures the tool runs inside `<project root>/.venv` with its dependencies
    installed, following a uv-based workflow.

    1. Creates a virtual environment at '.venv' if it doesn't exist.
    2. Installs 'uv' into the virtual environment.
    3. Uses 'uv' to install the project from 'pyproject.toml'.
    4. Re-launches `python -m <module>` inside the prepared environment.

    Does nothing when already inside that environment, when the tool is not
    running from a checkout, or when $WORKSTATION_SKIP_VENV is set.
    """
    if os.environ.get(SKIP_ENV_VAR):
        return

    project_root = find_project_root()
    if project_root is None:
        return

    venv_dir = project_root / ".venv"
    if Path(sys.prefix).resolve() == venv_dir.resolve():
        return

    venv_python = venv_dir / "bin" / "python"
    venv_pip = venv_dir / "bin" / "pip"
    venv_uv = venv_dir / "bin" / "uv"

    if not venv_dir.exists():
        print(f"Creating virtual environment in: {venv_dir}")
        _run_or_exit([sys.executable, "-m", "venv", str(venv_dir)], "VENV CREATION FAILED")

    print("Installing 'uv' into the virtual environment...")
    _run_or_exit([str(venv_pip), "install", "uv"], "FAILED TO INSTALL UV")

    print("Installing project dependencies with uv...")
    _run_or_exit(
        [str(venv_uv), "pip", "install", "--python", str(venv_python), "-e", "."],
        "UV PIP INSTALL FAILED",
        cwd=project_root,
    )

    print("Re-launching inside the virtual environment...")
    os.execv(
        str(venv_python),
        [str(venv_python), "-m", module] + sys.argv[1:],
    )
