# bootstrap/__init__.py
# -*- coding: utf-8 -*-
"""
Workstation bootstrap package.

Probes the machine, installs the package manager and configuration tooling,
fetches the bootstrap and dotfiles repositories, and hands over to the
playbook runner in the converge package.
"""
