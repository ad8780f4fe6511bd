"""FastAPI application entrypoint."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from blog_api.config import Settings
from blog_api.errors import BlogApiError, StoreError, ValidationError, log_and_sanitize_error
from blog_api.post_store import PostStore, create_post_store
from blog_api.posts import router as posts_router
from blog_api.telemetry import configure_logging, init_telemetry, shutdown_telemetry

configure_logging()

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_telemetry()
    settings: Settings | None = getattr(app.state, "settings", None)
    if settings is None:
        settings = Settings()
        app.state.settings = settings

    # An injected store belongs to the caller; only a store opened here is closed here
    store: PostStore | None = getattr(app.state, "store", None)
    owns_store = store is None
    if store is None:
        store = create_post_store(settings.store_backend, settings.database_url)
        app.state.store = store
    try:
        await store.ping()
        await log.ainfo("store_opened", backend=settings.store_backend)
        yield
    finally:
        if owns_store:
            await store.aclose()
            app.state.store = None
            await log.ainfo("store_closed", backend=settings.store_backend)
        shutdown_telemetry()


def _operation(request: Request) -> str:
    """Method plus route template, e.g. ``GET /posts/{post_id}``; never the raw path."""
    path = getattr(request.scope.get("route"), "path", "request")
    return f"{request.method} {path}"


def _error_response(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "detail": detail})


async def _handle_api_error(request: Request, exc: BlogApiError) -> JSONResponse:
    if isinstance(exc, StoreError):
        message, _ = log_and_sanitize_error(exc, _operation(request))
        return _error_response(exc.status_code, exc.error, message)
    return _error_response(exc.status_code, exc.error, exc.detail)


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]
    return _error_response(400, ValidationError.error, "; ".join(problems))


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    message, _ = log_and_sanitize_error(exc, _operation(request))
    return _error_response(500, "InternalError", message)


def create_app(store: PostStore | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the application; an injected *store* is used as-is instead of DATABASE_URL."""
    app = FastAPI(title="Blog API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.include_router(posts_router)
    app.add_exception_handler(BlogApiError, _handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _handle_request_validation  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, _handle_unexpected)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    FastAPIInstrumentor.instrument_app(app)
    return app


app = create_app()
