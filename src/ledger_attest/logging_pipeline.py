"""Structured JSON logging for ledger attestation runs."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from queue import Full, Queue
from typing import IO, Iterable, override
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName", "trace_id"}


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON objects.

    Keys supplied through ``extra=`` are collected under ``context`` so
    callers can attach paths, modes and fingerprints without widening the
    top-level schema.
    """

    def __init__(self, *, default_trace_id: str | None = None) -> None:
        super().__init__()
        self._default_trace_id = default_trace_id

    @override
    def format(self, record: logging.LogRecord) -> str:
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": getattr(record, "trace_id", None) or self._default_trace_id,
            "context": context,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text
        return json.dumps(payload, default=str)


class BoundedQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records instead of blocking when full."""

    @override
    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except Full:
            self.handleError(record)

    @override
    def handleError(self, record: logging.LogRecord) -> None:
        return


def configure_structured_logging(
    logger: logging.Logger,
    *,
    trace_id: str | None = None,
    level: int | str = logging.WARNING,
    stream: IO[str] | None = None,
) -> logging.handlers.QueueListener:
    """Attach a queue-backed JSON handler to ``logger``.

    Args:
        logger: Target logger, usually the ``ledger_attest`` package logger.
        trace_id: Identifier stamped on every record that does not carry its
            own ``trace_id``. A random one is generated when omitted.
        level: Logging verbosity applied to ``logger``.
        stream: Destination stream. Defaults to ``sys.stderr`` so JSON command
            output on stdout stays machine readable.

    Returns:
        The started queue listener; pass it to :func:`shutdown_listeners`.
    """

    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, BoundedQueueHandler):
            logger.removeHandler(handler)

    record_queue: Queue[logging.LogRecord] = Queue(maxsize=1024)
    logger.addHandler(BoundedQueueHandler(record_queue))

    stream_handler = logging.StreamHandler(stream)
    stream_handler.setFormatter(
        JsonFormatter(default_trace_id=trace_id or str(uuid4()))
    )

    listener = logging.handlers.QueueListener(record_queue, stream_handler)
    listener.start()
    return listener


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop queue listeners, flushing any pending records."""
    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover - interpreter shutdown
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)
