# bakery/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from bakery.core.config import Settings, get_settings
from bakery.core.errors import BakeryError, StorageError
from bakery.database import build_engine, create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from bakery.models import user as _user_models  # noqa: F401
from bakery.models import product as _product_models  # noqa: F401
from bakery.models import coupon as _coupon_models  # noqa: F401
from bakery.models import cart as _cart_models  # noqa: F401
from bakery.models import order as _order_models  # noqa: F401
from bakery.models import category as _category_models  # noqa: F401
from bakery.models import address as _address_models  # noqa: F401
from bakery.models import review as _review_models  # noqa: F401

# Routers
from bakery.routers.products import router as products_router
from bakery.routers.cart import router as cart_router
from bakery.routers.coupons import router as coupons_router
from bakery.routers.orders import router as orders_router
from bakery.routers.categories import router as categories_router
from bakery.routers.addresses import router as addresses_router
from bakery.routers.reviews import admin_router as admin_reviews_router
from bakery.routers.reviews import router as reviews_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - Dispose the engine's connection pool.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables(app.state.engine)
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield
    app.state.engine.dispose()


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    """
    Build the API application.

    Settings and engine live on `app.state`; dependencies read them from
    the request, so tests can pass their own.

    Run with:

        uvicorn bakery.main:create_app --factory
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine if engine is not None else build_engine(settings.DATABASE_URL)

    # --- CORS configuration ---
    # x-cart-id must be readable by the browser so guests can keep their cart.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["x-cart-id"],
    )

    @app.exception_handler(BakeryError)
    async def bakery_error_handler(request: Request, exc: BakeryError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_code": exc.error_code},
            headers=exc.headers,
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Unhandled storage failure on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=StorageError.status_code,
            content={
                "detail": StorageError.default_detail,
                "error_code": StorageError.error_code,
            },
        )

    # Versioned API prefix, e.g. /api/v1
    app.include_router(products_router, prefix=settings.API_V1_STR)
    app.include_router(cart_router, prefix=settings.API_V1_STR)
    app.include_router(coupons_router, prefix=settings.API_V1_STR)
    app.include_router(orders_router, prefix=settings.API_V1_STR)
    app.include_router(categories_router, prefix=settings.API_V1_STR)
    app.include_router(addresses_router, prefix=settings.API_V1_STR)
    app.include_router(reviews_router, prefix=settings.API_V1_STR)
    app.include_router(admin_reviews_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "alka-bakery-backend"}

    return app
