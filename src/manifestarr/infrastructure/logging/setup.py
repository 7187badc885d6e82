"""structlog on top of stdlib logging, written from a background thread.

Every record (structlog events, uvicorn, playwright) is rendered by one
``ProcessorFormatter``: console output in dev/test, JSON lines in prod.
Handlers never run on the event loop. Records are queued and a
``QueueListener`` thread writes them, DEBUG..WARNING to stdout and ERROR
and above to stderr.
"""

from __future__ import annotations

import atexit
import copy
import logging
import logging.config
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any

import structlog
from structlog.typing import EventDict, Processor

from manifestarr.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# uvicorn.run(log_config=...) re-applies this after startup. It names no
# handlers and leaves root alone, so uvicorn records keep reaching the
# root queue handler installed by _BackgroundSink.
_UVICORN_DICT_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "loggers": {
        "uvicorn": {"propagate": True},
        "uvicorn.error": {"propagate": True},
        "uvicorn.access": {"propagate": True},
    },
}


def _drop_color_message(_: Any, __: str, event_dict: EventDict) -> EventDict:
    # uvicorn duplicates the message with ANSI colors under this key.
    event_dict.pop("color_message", None)
    return event_dict


def _stamp_from_record(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """Timestamp stdlib records with their creation time (UTC, ``Z`` suffix)."""
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def _common_processors() -> list[Processor]:
    """Steps applied to structlog events and foreign records alike."""
    return [
        _drop_color_message,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]


def _renderer(config: AppConfig) -> Processor:
    if config.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _processor_formatter(config: AppConfig) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*_common_processors(), _stamp_from_record],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    )


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """uvicorn-compatible dictConfig that only sets uvicorn logger levels."""
    cfg = copy.deepcopy(_UVICORN_DICT_CONFIG)
    for logger_cfg in cfg["loggers"].values():
        logger_cfg["level"] = config.log_level
    return cfg


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self._max_level


class _StructlogPreservingQueueHandler(QueueHandler):
    """Enqueue a shallow copy so structlog's dict ``msg`` survives."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        return copy.copy(record)


class _BackgroundSink:
    """Owns the queue listener thread; restartable on reconfiguration."""

    def __init__(self) -> None:
        self._listener: QueueListener | None = None
        atexit.register(self.stop)

    def stop(self) -> None:
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.stop()

    def start(self, config: AppConfig) -> None:
        self.stop()

        formatter = _processor_formatter(config)
        stdout = logging.StreamHandler(stream=sys.stdout)
        stdout.setFormatter(formatter)
        stdout.addFilter(_MaxLevelFilter(logging.WARNING))
        stderr = logging.StreamHandler(stream=sys.stderr)
        stderr.setFormatter(formatter)
        stderr.setLevel(logging.ERROR)

        records: queue.Queue[logging.LogRecord] = queue.Queue()
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(_StructlogPreservingQueueHandler(records))
        root.setLevel(config.log_level)

        # Named loggers (uvicorn.*, playwright, ...) funnel into root.
        for name in list(logging.root.manager.loggerDict):
            named = logging.getLogger(name)
            named.handlers.clear()
            named.propagate = True
            named.setLevel(config.log_level)

        self._listener = QueueListener(records, stdout, stderr, respect_handler_level=True)
        self._listener.start()


_SINK = _BackgroundSink()


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """
    Configure structlog and stdlib logging for the process.

    Returns the dictConfig to hand to ``uvicorn.run(log_config=...)``.
    """
    structlog.configure(
        processors=[
            *_common_processors(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)
    _SINK.start(config)

    log.info("logging_configured", log_format=config.log_format, log_level=config.log_level)
    return cfg
