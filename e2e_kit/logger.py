"""
Logging setup and the step logger used by page objects and helpers.

Test steps are logged at four levels: ``info`` for actions, ``success``
for confirmed outcomes, ``warn`` for expected-but-notable events and
``error`` for failures.  ``success`` is a real logging level (25, between
INFO and WARNING) so it can be filtered like any other.
"""

from __future__ import annotations

import logging
import os

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging once for the process.

    Args:
        level: Level name.  Defaults to ``E2E_LOG_LEVEL`` or ``INFO``.
    """
    level_name = (level or os.environ.get("E2E_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
    )


class StepLogger(logging.LoggerAdapter):
    """Logger adapter with the step-trail vocabulary."""

    def success(self, msg, *args, **kwargs) -> None:
        self.log(SUCCESS, msg, *args, **kwargs)

    def warn(self, msg, *args, **kwargs) -> None:
        self.warning(msg, *args, **kwargs)

    def process(self, msg, kwargs):
        if self.extra and self.extra.get("step"):
            return f"[{self.extra['step']}] {msg}", kwargs
        return msg, kwargs


def get_step_logger(name: str, step: str | None = None) -> StepLogger:
    """Return a step logger wrapping ``logging.getLogger(name)``."""
    return StepLogger(logging.getLogger(name), {"step": step})
