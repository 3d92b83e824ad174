"""JSON-lines logging so every stage boundary can be reconciled from stdout."""

import json
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}
# requests logs every pooled connection at DEBUG/INFO through urllib3.
_NOISY_LOGGERS = ("urllib3",)


def _encode(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return repr(value)


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object; `extra=` fields go under "context"."""

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        if self._service:
            entry["service"] = self._service

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=True, separators=(",", ":"), default=_encode)


def configure_logging(level: str = "INFO", service: str | None = None) -> None:
    """Install the JSON stdout handler on the root logger, once per process."""

    root = logging.getLogger()
    if getattr(root, "_ticket_pipeline_configured", False):
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter(service=service))
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    root._ticket_pipeline_configured = True  # type: ignore[attr-defined]
