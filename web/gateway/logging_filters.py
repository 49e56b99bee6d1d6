"""Logging filters for enriching log records with request context.

The JSON formatter configured in ``gateway.settings`` references
``%(request_id)s``; attaching ``RequestIdFilter`` to the handler makes that
field available on every record, including records emitted by boto3,
httpx and Django itself.
"""

from logging import Filter, LogRecord
from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    The value is retrieved from the ``REQUEST_ID_CTX`` ContextVar set by
    ``RequestIdMiddleware``. Outside a request the ContextVar default ("-")
    is used. An explicit ``request_id`` passed via ``extra`` is kept.
    """

    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True
