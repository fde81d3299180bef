"""Logging setup shared by the API and the CLI."""
import logging
import sys

from purchase_importer.config import config
from purchase_importer.parse.redact import redact_string

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class RedactingFilter(logging.Filter):
    """Mask secrets in every formatted log message."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        redacted = redact_string(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with a redacting stream handler."""
    root = logging.getLogger()
    root.setLevel((level or config.LOG_LEVEL).upper())

    for handler in root.handlers:
        if any(isinstance(f, RedactingFilter) for f in handler.filters):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RedactingFilter())
    root.addHandler(handler)

    # Supabase HTTP stack is chatty at DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)
