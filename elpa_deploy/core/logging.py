"""Structured logging via structlog.

Configured once by the command-line entry point. Library modules keep
using `logging.getLogger(__name__)`; the stdlib bridge below routes those
records to the same stream.

Renderer selection:
  json_logs=True: `JSONRenderer` for machine-parseable output.
  otherwise:      `ConsoleRenderer` for people at a terminal.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

import structlog


def configure_structlog(
    debug: bool = False,
    json_logs: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure structlog for the process lifetime.

    Calling it again reconfigures in place, so tests can call it freely.
    """
    stream = stream or sys.stderr
    level = logging.DEBUG if debug else logging.INFO

    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )

    # Bridge stdlib logging so the pipeline modules write to the same stream.
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=stream,
        level=level,
        force=True,
    )
