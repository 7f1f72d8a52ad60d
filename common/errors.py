# common/errors.py
# -*- coding: utf-8 -*-
"""
Exception types raised by bootstrap steps.

Every fatal condition in the bootstrap sequence is one of these. The
orchestrator decides whether a failure halts the run; the exceptions only
describe what went wrong.
"""

from typing import Optional


class BootstrapError(Exception):
    """Base class for all bootstrap failures."""

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step

    def __str__(self) -> str:
        message = super().__str__()
        return f"[{self.step}] {message}" if self.step else message


class MissingPrerequisiteError(BootstrapError):
    """A required tool is absent and could not be installed."""


class PackageManagerError(BootstrapError):
    """A package manager operation failed."""


class FetchError(BootstrapError):
    """A repository could not be cloned or updated."""

    def __init__(self, message: str, url: Optional[str] = None, step: Optional[str] = None):
        super().__init__(message, step=step)
        self.url = url


class PlaybookError(BootstrapError):
    """The configuration-management engine failed or its input is missing."""
