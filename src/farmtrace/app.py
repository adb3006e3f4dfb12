"""FastAPI application factory for FarmTrace."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from farmtrace.common.config import get_settings
from farmtrace.common.logging import get_logger, setup_logging
from farmtrace.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)
    logger = get_logger("app")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from farmtrace.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        logger.info("FarmTrace %s started (%s)", settings.api_version, settings.environment)
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from farmtrace.ledger.router import router as ledger_router
    from farmtrace.products.router import router as product_router

    prefix = settings.api_prefix
    app.include_router(ledger_router, prefix=prefix, tags=["supply-chain"])
    app.include_router(product_router, prefix=prefix, tags=["products"])

    return app
