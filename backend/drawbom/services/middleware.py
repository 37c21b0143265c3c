"""Request tracing for the extraction API: request id, timing and record count."""
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("drawbom-api.middleware")

SKIP_LOG_PATHS = {"/health"}


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Every response carries X-Request-ID (the caller's, or a fresh uuid4) and
    X-Process-Time in milliseconds. Extraction routes that record
    ``request.state.material_count`` also get X-Material-Count, and the
    count is added to the per-request log line. /health is not logged.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.material_count = None
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        material_count = getattr(request.state, "material_count", None)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)
        if material_count is not None:
            response.headers["X-Material-Count"] = str(material_count)

        if request.url.path in SKIP_LOG_PATHS:
            return response

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} → {response.status_code} ({duration_ms} ms)",
            extra={
                "http_method": request.method,
                "http_path": request.url.path,
                "http_status": response.status_code,
                "request_id": request_id,
                "duration_ms": duration_ms,
                "material_count": material_count,
            },
        )
        return response
