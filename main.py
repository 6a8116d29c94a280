#main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from db import close_pool, init_pool
from middleware import RequestContextMiddleware
from routes.auth import router as auth_router
from routes.health import router as health_router
from routes.payouts import router as payouts_router
from routes.vendors import router as vendors_router
from services.errors import AppError, StorageError
from services.observability import configure_logging
from settings import cors_origins, settings, validate_env_settings

logger = logging.getLogger("vendorpay")

_HTTP_ERROR_LABELS = {
    400: "Validation error",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    405: "Method not allowed",
}


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_env_settings()
    init_pool()
    try:
        yield
    finally:
        close_pool()


async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, StorageError):
        logger.error("storage error path=%s: %s", request.url.path, exc.message)
        return _error(500, "Internal server error", "Something went wrong")
    logger.info("request rejected path=%s status=%s: %s", request.url.path, exc.status_code, exc.message)
    return _error(exc.status_code, exc.error, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(400, "Validation error", message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    label = _HTTP_ERROR_LABELS.get(exc.status_code, "Error")
    message = "Route not found" if exc.status_code == 404 and exc.detail == "Not Found" else str(exc.detail)
    return _error(exc.status_code, label, message)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error path=%s", request.url.path)
    return _error(500, "Internal server error", "Something went wrong")


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Vendor Payouts API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(RequestContextMiddleware)
    # outermost, so preflight requests are answered before routing
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # -----------------------------
    # ROUTERS
    # -----------------------------
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(vendors_router)
    app.include_router(payouts_router)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    return app


app = create_app()
