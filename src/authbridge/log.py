"""Default Logger collaborator backed by the standard logging module."""

from __future__ import annotations

import logging
from typing import Any


class StructuredLogger:
    """Emit `error(code, *details)` calls as structured log records.

    The code becomes the log message; details are attached under
    `extra={"code": ..., "details": [...]}` and rendered with `repr`, so
    formatters and JSON handlers can pick them up without parsing.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("authbridge")

    def error(self, code: str, *details: Any) -> None:
        self._logger.error(
            code,
            extra={"code": code, "details": [repr(detail) for detail in details]},
        )
