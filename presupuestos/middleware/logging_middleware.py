import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from presupuestos.logging_config import get_logger

logger = get_logger(__name__)

# Paths polled by load balancers, not worth a log line each
QUIET_PATHS = {"/health"}


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        quiet = request.url.path in QUIET_PATHS

        if not quiet:
            logger.info(
                f"Request: {request.method} {request.url.path} - "
                f"Client: {request.client.host if request.client else 'unknown'}"
            )

        response = await call_next(request)

        process_time = time.perf_counter() - start_time

        if response.status_code >= 500:
            logger.warning(
                f"Response: {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.4f}s"
            )
        elif not quiet:
            logger.info(
                f"Response: {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.4f}s"
            )

        response.headers["X-Process-Time"] = str(process_time)

        return response
