import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog

from safetyguard.config import AppConfig, get_config

LOG_FILE = Path("logs/safetyguard.log")


def _use_json(config: AppConfig) -> bool:
    # JSON_LOGS is honoured for deployments that already set it
    if os.getenv("JSON_LOGS", "").lower() == "true":
        return True
    return config.log_format.lower() == "json"


def configure_logging(level: str | None = None, config: AppConfig | None = None) -> None:
    """Route structlog and stdlib ``logging`` through one renderer.

    Every record carries the store/role scope bound with ``bind_scope``.
    """
    config = config or get_config()

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if _use_json(config)
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=pre_chain
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    # File output only when the logs directory has been created
    if LOG_FILE.parent.exists():
        handlers.append(logging.FileHandler(LOG_FILE))

    root = logging.getLogger()
    # Replace handlers from an earlier call, leave foreign ones alone
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel((level or config.log_level).upper())


def bind_scope(store_id: str | None, role: str | None) -> None:
    """Attach the active store/role scope to every subsequent log line."""
    structlog.contextvars.clear_contextvars()
    if store_id:
        structlog.contextvars.bind_contextvars(store_id=store_id)
    if role:
        structlog.contextvars.bind_contextvars(role=role)
