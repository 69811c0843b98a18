"""
Request-ID propagation for Starlette/FastAPI applications.

The middleware is a consumer of the context API: it attaches the request ID to
the request's ``LogContext`` so that ``get_logger().with_context(ctx)`` tags
every line written while the request is handled.
"""

from __future__ import annotations

import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .context import attach_fields, use_context
from .fields import Field

REQUEST_ID_HEADER = "X-Request-Id"
REQUEST_ID_KEY = "request_id"


def new_request_id() -> str:
    return uuid.uuid4().hex


class RequestIDMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        header_name: str = REQUEST_ID_HEADER,
        id_factory: Callable[[], str] = new_request_id,
    ) -> None:
        super().__init__(app)
        self._header_name = header_name
        self._id_factory = id_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self._header_name) or self._id_factory()

        ctx = attach_fields(
            getattr(request.state, "log_context", None),
            Field.string(REQUEST_ID_KEY, request_id),
        )
        request.state.log_context = ctx

        with use_context(ctx):
            response = await call_next(request)

        response.headers[self._header_name] = request_id
        return response
