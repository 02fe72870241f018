"""Logging filters for enriching log records with request context.

``RequestIdFilter`` is wired into ``settings.LOGGING`` next to the
python-json-logger formatter, so every JSON line emitted while handling an
order or a gateway callback carries the id assigned by
``RequestIdMiddleware``.
"""

from logging import Filter, LogRecord
from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    The value is retrieved from ``REQUEST_ID_CTX``. Outside of a request
    (management commands, startup checks) a hyphen ("-") is used so
    formatters can reliably reference ``%(request_id)s``.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True
