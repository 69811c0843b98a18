"""
请求 ID 中间件单元测试
"""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from teelog import registry
from teelog.context import current_context, fields_from_context
from teelog.middleware import REQUEST_ID_HEADER, RequestIDMiddleware


def logger_config(log_dir) -> dict:
    return {"filename": str(log_dir / "app.log"), "error_filename": str(log_dir / "error.log"), "console": False}


def build_app(**middleware_options) -> Starlette:
    async def endpoint(request: Request) -> JSONResponse:
        registry.get_logger().with_context(request.state.log_context).info("handled")
        current = {f.key: f.value for f in fields_from_context(current_context())}
        return JSONResponse({"current": current})

    return Starlette(
        routes=[Route("/", endpoint)],
        middleware=[Middleware(RequestIDMiddleware, **middleware_options)],
    )


class TestRequestIDMiddleware:
    """请求 ID 中间件测试"""

    def test_incoming_id_is_echoed_and_logged(self, log_dir, read_records) -> None:
        registry.init_logger(logger_config(log_dir))
        client = TestClient(build_app())

        response = client.get("/", headers={REQUEST_ID_HEADER: "req-42"})
        registry.get_logger().sync()

        assert response.headers[REQUEST_ID_HEADER] == "req-42"
        assert response.json() == {"current": {"request_id": "req-42"}}
        (record,) = read_records(log_dir / "app.log")
        assert record["request_id"] == "req-42"
        assert record["msg"] == "handled"

    def test_generated_id(self, log_dir) -> None:
        registry.init_logger(logger_config(log_dir))
        client = TestClient(build_app(id_factory=lambda: "generated"))

        response = client.get("/")

        assert response.headers[REQUEST_ID_HEADER] == "generated"
        assert response.json()["current"] == {"request_id": "generated"}

    def test_custom_header(self, log_dir) -> None:
        registry.init_logger(logger_config(log_dir))
        client = TestClient(build_app(header_name="X-Trace-Id"))

        response = client.get("/", headers={"X-Trace-Id": "trace-1"})

        assert response.headers["X-Trace-Id"] == "trace-1"
        assert REQUEST_ID_HEADER not in response.headers
