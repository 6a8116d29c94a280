import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from services.observability import set_request_id

logger = logging.getLogger("vendorpay.http")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        start = time.time()

        # attach to request state
        request.state.request_id = req_id
        set_request_id(req_id)

        response = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = req_id
            return response
        finally:
            duration_ms = int((time.time() - start) * 1000)
            status = getattr(response, "status_code", 500)

            # no headers, no bodies: Authorization must never reach the log
            logger.info(
                "http_request_end method=%s path=%s status=%s duration_ms=%s",
                request.method,
                request.url.path,
                status,
                duration_ms,
            )
            set_request_id(None)
