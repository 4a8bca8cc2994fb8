# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Logging setup for lattice commands.

Every line written during one CLI run carries that run's invocation ID,
and every persisted vault write is logged through ``mutation_logger`` so
an interrupted multi-file operation can be reconstructed afterwards.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

TEXT_FORMAT = "%(asctime)s [%(invocation_id)s] %(levelname)s %(name)s: %(message)s"

# Context variable for the invocation ID (one per CLI run)
_invocation_id: ContextVar[str | None] = ContextVar("invocation_id", default=None)


def get_invocation_id() -> str | None:
    """Get the current invocation ID, or None if not set."""
    return _invocation_id.get()


@contextmanager
def invocation_context(
    invocation_id: str | None = None,
) -> Generator[str, None, None]:
    """Scope an invocation ID; a fresh UUID is generated when none is given."""
    iid = invocation_id or str(uuid.uuid4())
    token = _invocation_id.set(iid)
    try:
        yield iid
    finally:
        _invocation_id.reset(token)


class InvocationFilter(logging.Filter):
    """Stamp each record with the short form of the current invocation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        iid = get_invocation_id()
        record.invocation_id = iid[:8] if iid else "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, used for log files and ``LATTICE_LOG_FORMAT=json``."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if get_invocation_id():
            log_data["invocation_id"] = get_invocation_id()
        if hasattr(record, "mutation"):
            log_data["mutation"] = record.mutation
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def configure_logging(verbose: bool = False) -> None:
    """Point the root logger at stderr, plus a JSON log file when configured.

    The level comes from ``LATTICE_LOG_LEVEL`` unless ``verbose`` forces
    DEBUG. ``LATTICE_LOG_FORMAT=json`` switches stderr to JSON lines.
    """
    from .config import get_config

    config = get_config()
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)

    console_formatter: logging.Formatter
    if config.log_format.lower() == "json":
        console_formatter = JSONFormatter()
    else:
        console_formatter = logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(console_formatter)
    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.addFilter(InvocationFilter())
        root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)


class MutationLogger:
    """Logger for persisted vault writes.

    Every create, update, delete, move and restore goes through here.
    Long field values (propositions) are truncated.
    """

    MAX_VALUE_LENGTH = 200

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("lattice.mutations")

    def log_mutation(
        self,
        operation: str,
        slug: str,
        path: str | None = None,
        fields: dict[str, Any] | None = None,
    ) -> None:
        """Log one persisted mutation.

        Args:
            operation: create, update, delete, move or restore
            slug: Slug of the node written
            path: File path written (destination for moves)
            fields: Changed frontmatter fields
        """
        msg = f"{operation}: {slug}"
        if path:
            msg += f" -> {path}"
        self.logger.info(
            msg,
            extra={
                "mutation": {
                    "operation": operation,
                    "slug": slug,
                    "path": path,
                    "fields": self._truncate(fields or {}),
                }
            },
        )

    def _truncate(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: self._truncate(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._truncate(item) for item in data]
        elif isinstance(data, str) and len(data) > self.MAX_VALUE_LENGTH:
            return data[: self.MAX_VALUE_LENGTH] + "..."
        else:
            return data


# Default mutation logger
mutation_logger = MutationLogger()
