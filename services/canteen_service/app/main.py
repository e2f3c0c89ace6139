"""FastAPI application for the Canteen Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.db.base import Base
from libs.db.config import AsyncSessionLocal, engine
from services.canteen_service.errors import CanteenError
from services.canteen_service.routers import auth_router, orders_router
from services.canteen_service.schemas import ErrorResponse
from services.canteen_service.seed import seed_users
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = get_logger(__name__)


def error_body(message: str) -> dict:
    return ErrorResponse(error=message).model_dump()


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid request: {location} {first.get('msg', '')}".strip()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    if settings.SEED_DEMO_USERS:
        async with AsyncSessionLocal() as session:
            await seed_users(session)
    yield
    await engine.dispose()


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CanteenError)
    async def canteen_error_handler(request: Request, exc: CanteenError):
        logger.info(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
        return JSONResponse(error_body(exc.message), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(error_body(_validation_message(exc)), status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            error_body(str(exc.detail)),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Unhandled storage error on %s", request.url.path)
        return JSONResponse(error_body("Internal server error"), status_code=500)


def create_app() -> FastAPI:
    """Create and configure the Canteen Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="Canteen Ordering Service",
        version="0.1.0",
        description="Order placement, owner order queue and status tracking for the canteen.",
        lifespan=lifespan,
    )

    add_observability_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/healthz", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok", "message": "API running"}

    app.include_router(auth_router)
    app.include_router(orders_router)

    return app


app = create_app()
