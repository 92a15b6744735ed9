"""Structured JSON logging configuration."""
import logging
import sys
from pythonjsonlogger import jsonlogger
from app.core.config import settings


def setup_logging() -> None:
    """Configure JSON structured logging for production, human-readable for dev.

    Both modes include the request id injected by RequestIdMiddleware so a
    single import run can be followed across its log lines.
    """
    request_id_filter = RequestIdLogFilter()
    if getattr(settings, 'APP_ENV', 'development') == "production":
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(request_id)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler.setFormatter(formatter)
        handler.addFilter(request_id_filter)
        logging.root.handlers = [handler]
        logging.root.setLevel(logging.INFO)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s [%(request_id)s] %(message)s",
        )
        for handler in logging.root.handlers:
            handler.addFilter(request_id_filter)


class RequestIdLogFilter(logging.Filter):
    """Attach the current request id (or '-') to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        from app.middleware.request_id import get_request_id

        if not hasattr(record, "request_id"):
            record.request_id = get_request_id() or "-"
        return True
