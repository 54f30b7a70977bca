import logging
import uuid
from contextvars import ContextVar

# Read by the logging filter and by the activity log writer.
_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

MAX_REQUEST_ID_LENGTH = 64


def get_current_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIDFilter(logging.Filter):
    """Adds ``request_id`` to every record; None outside a request."""

    def filter(self, record):
        request = getattr(record, "request", None)
        from_request = getattr(request, "request_id", None)
        record.request_id = from_request or get_current_request_id()
        return True


class RequestIDMiddleware:
    """
    Correlates a request across logs, activity entries and the response.

    A client-supplied X-Request-ID is reused (truncated); otherwise a UUID4
    is generated. The id is bound to the context only while the view runs.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    @staticmethod
    def resolve_request_id(request) -> str:
        supplied = request.headers.get("X-Request-ID", "")
        return supplied[:MAX_REQUEST_ID_LENGTH] or str(uuid.uuid4())

    def __call__(self, request):
        request.request_id = self.resolve_request_id(request)
        token = _request_id_ctx.set(request.request_id)
        try:
            response = self.get_response(request)
        finally:
            _request_id_ctx.reset(token)

        response["X-Request-ID"] = request.request_id
        return response
