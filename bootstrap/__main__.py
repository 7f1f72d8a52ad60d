# bootstrap/__main__.py
# -*- coding: utf-8 -*-
from bootstrap.selfenv import ensure_venv_and_dependencies

ensure_venv_and_dependencies()

from bootstrap.cli import cli  # noqa: E402

cli(prog_name="workstation")
