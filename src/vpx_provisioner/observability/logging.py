"""Structured logging for the provisioner.

structlog sits on top of stdlib logging: provisioning modules log through
``logging.getLogger(__name__)`` with ``extra=`` fields, the CLI logs through
``get_logger()``, and both come out of the same renderer tagged with the
current ``operation_id``.

Usage::

    from vpx_provisioner.observability.logging import configure_logging, get_logger

    configure_logging()  # once, at CLI startup
    get_logger(__name__).info("appliance_ready", appliance_id=1234)
"""

from __future__ import annotations

import logging
import os
import sys
from contextvars import ContextVar

import structlog

# Set by the CLI for each invocation (create, pair, ...).
operation_id_ctx: ContextVar[str | None] = ContextVar("operation_id", default=None)

_configured = False

_NOISY_LOGGERS = ("httpx", "httpcore")


def _add_operation_id(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    oid = operation_id_ctx.get()
    if oid is not None:
        event_dict["operation_id"] = oid
    return event_dict


def _pre_chain() -> list:
    """Processors applied to both structlog and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        _add_operation_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
) -> None:
    """Install the stderr handler and structlog config. Later calls are no-ops.

    ``level`` falls back to ``LOG_LEVEL`` (default INFO). ``json_output``
    falls back to ``LOG_FORMAT`` (``json`` unless set to anything else, in
    which case records are rendered for a terminal).
    """
    global _configured
    if _configured:
        return
    _configured = True

    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    if json_output is None:
        json_output = os.environ.get("LOG_FORMAT", "json") == "json"

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[*pre_chain, structlog.stdlib.ExtraAdder()],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer()
                if json_output
                else structlog.dev.ConsoleRenderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def _reset_for_tests() -> None:
    global _configured
    _configured = False
    structlog.reset_defaults()
