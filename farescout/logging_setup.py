from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .sanitizer import sanitize_text

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class SanitizingFilter(logging.Filter):
    """Rewrites each record so that its rendered text is sanitized.

    Installed on handlers, so records from third-party loggers (``urllib3``
    logs full request URLs at DEBUG) are covered too.
    """

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self.secrets = tuple(secrets)
        self._formatter = logging.Formatter()

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = sanitize_text(record.getMessage(), self.secrets)
        record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = self._formatter.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = sanitize_text(record.exc_text, self.secrets)
        if record.stack_info:
            record.stack_info = sanitize_text(record.stack_info, self.secrets)
        return True


def configure_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    secrets: Iterable[str] = (),
) -> None:
    """Configure root logging with sanitizing handlers."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    sanitizer = SanitizingFilter(secrets)
    for handler in handlers:
        handler.addFilter(sanitizer)

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        handlers=handlers,
        format=LOG_FORMAT,
        force=True,
    )


__all__ = ["SanitizingFilter", "configure_logging", "LOG_FORMAT"]
