"""structlog setup shared by every netbundle command.

stdlib ``logging`` records (which is what the library modules emit) and
structlog loggers both end up in one stderr handler, rendered either for
people (colored when stderr is a TTY) or as JSON lines with ``--log-json``.

Build progress goes through the event sink, not the log; the log carries
diagnostics (retries, redirects, insecure transport, reporter failures).
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

# Chatty third-party loggers held at WARNING even in verbose mode.
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack")


def _pre_chain() -> list[Processor]:
    """Processors applied to structlog and stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _stderr_handler(log_json: bool) -> logging.Handler:
    final: Processor
    if log_json:
        final = structlog.processors.JSONRenderer()
    else:
        final = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, final],
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging to one stderr handler.

    ``verbose`` puts the ``netbundle`` loggers at DEBUG (WARNING otherwise);
    everything else stays at WARNING.
    """
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers[:] = [_stderr_handler(log_json)]
    root.setLevel(logging.WARNING)

    logging.getLogger("netbundle").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
