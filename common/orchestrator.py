# common/orchestrator.py
# -*- coding: utf-8 -*-
"""
Runs a fixed, linear list of bootstrap steps.

Steps share one context dictionary. Each step appends what it changed to
`context["changes"]` through `record_change`, so a run that finds
everything in place ends with an empty list.
"""

import logging
import sys
from typing import Any, Callable, Dict, List, Optional


def record_change(context: Dict[str, Any], description: str) -> None:
    """Note a mutation performed by a step."""
    context.setdefault("changes", []).append(description)


class Orchestrator:
    """Executes queued steps in order; fatal failures end the process."""

    def __init__(
        self,
        app_settings: Any,
        orchestrator_logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = orchestrator_logger or logging.getLogger(__name__)
        self.tasks: List[Dict[str, Any]] = []
        self.failed_tasks: List[str] = []
        self.context: Dict[str, Any] = {"changes": []}

    def add_task(
        self,
        name: str,
        func: Callable,
        args: Optional[List[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        fatal: bool = True,
    ):
        """
        Queue a step.

        Args:
            name: Label used in log lines and as the `<name>_result` context key.
            func: Called as `func(*args, **kwargs, context=..., app_settings=...)`.
            args: Positional arguments for `func`.
            kwargs: Keyword arguments for `func`.
            fatal: When False, a failure is logged and the run carries on.
        """
        self.tasks.append({
            "name": name,
            "func": func,
            "args": args or [],
            "kwargs": kwargs or {},
            "fatal": fatal,
        })
        self.logger.debug(f"Queued step '{name}' (fatal={fatal}).")

    def _run_task(self, task: Dict[str, Any]) -> Any:
        call_kwargs = dict(task["kwargs"])
        call_kwargs["context"] = self.context
        call_kwargs["app_settings"] = self.app_settings
        return task["func"](*task["args"], **call_kwargs)

    def run(self) -> bool:
        """
        Run every queued step.

        A fatal step that raises is logged and the process exits with
        status 1; later steps never run.

        Returns:
            True if every step completed, False if a non-fatal step failed.
        """
        total = len(self.tasks)
        for position, task in enumerate(self.tasks, start=1):
            name = task["name"]
            self.logger.info(f"--- [{position}/{total}] {name} ---")
            try:
                self.context[f"{name}_result"] = self._run_task(task)
            except Exception as e:
                self.logger.critical(f"🔥 Step '{name}' failed: {e}", exc_info=True)
                self.failed_tasks.append(name)
                if task["fatal"]:
                    self.logger.error(
                        "Stopping: later steps depend on this one. Fix the problem and re-run."
                    )
                    sys.exit(1)
                self.logger.warning(f"Step '{name}' is optional; continuing.")
                continue
            self.logger.info(f"✅ {name} done.")

        if self.failed_tasks:
            self.logger.warning(
                f"Finished with failed optional steps: {', '.join(self.failed_tasks)}"
            )
            return False
        return True
