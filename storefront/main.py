"""Storefront API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.auth.service import UserService
from storefront.catalog.service import CatalogService
from storefront.comments.router import router as comments_router
from storefront.comments.service import CommentService
from storefront.comments.store import CommentStore
from storefront.config import get_settings
from storefront.core.context import get_request_id
from storefront.core.database import init_async_cassandra, shutdown_async_cassandra
from storefront.core.logging import configure_structlog, get_logger
from storefront.core.middleware import RequestContextMiddleware
from storefront.core.redis import init_redis, shutdown_redis
from storefront.health import router as health_router
from storefront.notifications.dispatcher import NotificationDispatcher
from storefront.notifications.router import router as notifications_router
from storefront.notifications.service import NotificationService
from storefront.notifications.websocket_router import get_connection_manager
from storefront.notifications.websocket_router import (
    router as notifications_ws_router,
)


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis is optional; without it realtime pushes go to local sockets only
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - realtime fan-out limited to this process",
        )

    dispatcher: NotificationDispatcher | None = None
    try:
        session = await init_async_cassandra()
        keyspace = settings.cassandra_keyspace
        logger.info("cassandra_initialized")

        notification_service = NotificationService(
            session=session,
            keyspace=keyspace,
            redis=redis_client,
            connections=get_connection_manager(),
        )
        dispatcher = NotificationDispatcher(
            notification_service,
            preview_length=settings.comments_reply_preview_length,
        )
        app.state.notification_service = notification_service
        logger.info(
            "notification_service_initialized", redis_enabled=redis_client is not None
        )

        app.state.comment_service = CommentService(
            store=CommentStore(session=session, keyspace=keyspace),
            users=UserService(session=session, keyspace=keyspace),
            catalog=CatalogService(session=session, keyspace=keyspace),
            notifier=dispatcher,
            settings=settings,
        )
        logger.info("comment_service_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    if dispatcher is not None:
        await dispatcher.drain()
        logger.info("notification_dispatcher_drained", **dispatcher.get_stats())
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug stays off so Starlette never renders tracebacks; handlers below log them
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Storefront API - product comments and notifications",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": _get_request_id_safe(request),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors; field details are safe to expose."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": _get_request_id_safe(request),
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Full details are logged; the response carries a generic message.
        """
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": _get_request_id_safe(request),
            },
        )

    app.include_router(health_router)
    app.include_router(comments_router)
    app.include_router(notifications_router)
    app.include_router(notifications_ws_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Storefront API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
