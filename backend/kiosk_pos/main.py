from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging
import os

from kiosk_pos import __version__
from kiosk_pos.core.config import settings
from kiosk_pos.core.errors import KioskPosError, StorageError
from kiosk_pos.routes.auth import router as auth_router
from kiosk_pos.routes.health import router as health_router
from kiosk_pos.routes.users import router as users_router
from kiosk_pos.routes.cash import router as cash_router
from kiosk_pos.routes.price_lists import router as price_lists_router
from kiosk_pos.routes.products import router as products_router
from kiosk_pos.routes.sales import router as sales_router
from kiosk_pos.routes.expenses import router as expenses_router
from kiosk_pos.routes.supplier_payments import router as supplier_payments_router
from kiosk_pos.core.database import SessionLocal, init_db
from kiosk_pos.services.seed import seed_demo


logger = logging.getLogger(__name__)


async def kiosk_error_handler(request: Request, exc: KioskPosError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    # Errors the services did not translate themselves
    logger.error("unhandled storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=StorageError.status_code,
        content={"detail": "Error de base de datos, intente nuevamente", "code": StorageError.code},
    )


def create_app() -> FastAPI:
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title="Kiosk POS API", version=__version__)

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(KioskPosError, kiosk_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(users_router, prefix="/users", tags=["users"])
    app.include_router(cash_router, prefix="/cash", tags=["cash"])
    app.include_router(price_lists_router, prefix="/price-lists", tags=["price-lists"])
    app.include_router(products_router, prefix="/products", tags=["products"])
    app.include_router(sales_router, prefix="/sales", tags=["sales"])
    app.include_router(expenses_router, prefix="/expenses", tags=["expenses"])
    app.include_router(supplier_payments_router, prefix="/supplier-payments", tags=["supplier-payments"])

    return app


app = create_app()

# Only seed in development or when explicitly requested
if settings.env == "dev" or os.getenv("FORCE_SEED") == "true":
    try:
        init_db()
        with SessionLocal() as db:
            seed_demo(db)
    except SQLAlchemyError:
        logger.exception("demo seed skipped: database not ready")
