# backend/logging_config.py

import logging
import os
import sys
import json
from contextvars import ContextVar

# Set by the request middleware, read by RequestIdFilter
request_id_var: ContextVar = ContextVar("request_id", default=None)

# Custom formatter that outputs logs as structured JSON
class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
        }

        # Optionally include request_id if it's been injected into the record
        if getattr(record, "request_id", None):
            payload["request_id"] = record.request_id

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload)


class RequestIdFilter(logging.Filter):
    """Copies the current request id onto every record."""
    def filter(self, record):
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


# Function to configure the root logger with our JSON formatter
def setup_logging(level=None):
    # Stream handler writing to stdout
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.setLevel(level or os.getenv("LOG_LEVEL", "INFO").upper())

    # Clear any existing handlers to avoid duplicate logs
    root.handlers.clear()
    root.addHandler(handler)
