"""
模块职责：请求级日志中间件。
- 为每个请求生成 request_id（或沿用客户端传入的 x-request-id）；
- 记录 request_start 与 request_end（含耗时、状态码、客户端 IP）；
- 未被全局 handler 接住的异常输出 request_error 后继续抛出。
不记录请求体与 Authorization 头。
"""
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from blog_api.infra.logger import emit, emit_error

REQUEST_ID_HEADER = "x-request-id"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        start = time.perf_counter()
        base = {
            "request_id": rid,
            "method": request.method,
            "path": str(request.url.path),
        }
        emit("request_start", ip=request.client.host if request.client else None, **base)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            emit_error(
                "request_error",
                error=repr(e),
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                **base,
            )
            raise
        emit(
            "request_end",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            **base,
        )
        response.headers[REQUEST_ID_HEADER] = rid
        return response
