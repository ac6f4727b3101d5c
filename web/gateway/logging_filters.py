"""Logging filters for enriching log records with request context.

``RequestIdFilter`` injects the current request id into log records using
the ContextVar set by the gateway middleware, so JSON log lines can be
correlated per request without touching individual log statements.
"""

from logging import Filter, LogRecord
from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    Outside a request the ContextVar default ("-") is used so formatters can
    always reference ``%(request_id)s``. A ``request_id`` already passed via
    ``extra`` is left untouched.
    """

    def filter(self, record: LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = REQUEST_ID_CTX.get()
        return True
