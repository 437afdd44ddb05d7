import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from waitlist.api.routes import api_router
from waitlist.api.subscribe import METHOD_NOT_ALLOWED_MESSAGE, SUBSCRIBE_FAILED_MESSAGE
from waitlist.core.config import settings
from waitlist.core.logging_config import configure_logging
from waitlist.core.sentry import init_sentry
from waitlist.db.session import init_store
from waitlist.middleware import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = init_store()
    if settings.store_auto_create:
        await store.create_schema()
    app.state.store = store
    logger.info("Subscriber store ready", extra={"environment": settings.environment})
    try:
        yield
    finally:
        await store.dispose()


def get_application() -> FastAPI:
    configure_logging(settings.log_json)
    init_sentry()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        openapi_tags=[
            {"name": "subscribe", "description": "Waitlist signup"},
            {"name": "health", "description": "Liveness probe"},
        ],
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router, prefix="/api")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = METHOD_NOT_ALLOWED_MESSAGE if exc.status_code == 405 else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder({"message": message}),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": SUBSCRIBE_FAILED_MESSAGE})

    return app


app = get_application()
