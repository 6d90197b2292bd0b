"""Structured logging for chartguard.

``setup_logging`` routes stdlib ``logging`` records (every module logs via
``logging.getLogger(__name__)``) through structlog.  Output is JSON lines
unless stderr is a terminal or ``json_logs`` says otherwise.

``visit_log_context`` tags every record emitted while one visit is being
processed with its ``visit_id``::

    with visit_log_context(inputs.visit.id):
        result = scorer.score(...)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from chartguard.core.config import ObservabilityConfig

PACKAGE_LOGGER = "chartguard"


def _renderers(config: ObservabilityConfig) -> list[structlog.types.Processor]:
    json_logs = config.json_logs if config.json_logs is not None else not sys.stderr.isatty()
    if json_logs:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def setup_logging(config: ObservabilityConfig) -> None:
    """Configure structlog and attach a single stderr handler to the root logger."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    # Also applied to stdlib records so bound visit context reaches them
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderers(config),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


@contextmanager
def visit_log_context(visit_id: str, **extra: str) -> Iterator[None]:
    """Bind ``visit_id`` (plus any ``extra`` keys) to log records in this block."""
    with structlog.contextvars.bound_contextvars(visit_id=visit_id, **extra):
        yield
