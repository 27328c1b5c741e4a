"""
NextGen Storefront API
======================

Main entry point for the RDP/VPS storefront service.

Endpoints:
- GET /api/health - Health check
- GET /api/plans - Public plan catalog
- GET /api/plans/{plan_id} - Plan detail for the order page
- POST /api/promo/validate - Promo code validation (rate limited)
- POST /api/upload - Payment-proof upload (rate limited)
- GET /api/auth/admin/check - Session introspection
- GET/POST/PATCH/DELETE /api/admin/plans - Plan management (admin only)
- GET/PATCH/DELETE /api/admin/media - Upload moderation (admin only)
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront import __version__
from storefront.catalog import BasePlanStore, PostgresPlanStore, SQLitePlanStore
from storefront.config import StorefrontConfig
from storefront.database import init_database
from storefront.logging_config import configure_logging
from storefront.media import BaseMediaStore, PostgresMediaStore, SQLiteMediaStore
from storefront.pricing import PromoValidator
from storefront.routes import admin_media, admin_plans, auth, limiter, plans, promo, uploads
from storefront.uploads import CloudinaryStorage, LocalDiskStorage

logger = logging.getLogger(__name__)


def create_app(config: Optional[StorefrontConfig] = None) -> FastAPI:
    """Build the FastAPI application. Config is read from the environment when omitted."""
    if config is None:
        # Load .env file if present (dev mode)
        load_dotenv()
        config = StorefrontConfig.from_env()

    app = FastAPI(
        title="NextGen Storefront",
        description="RDP and VPS plan catalog, promo codes and order uploads",
        version=__version__,
    )
    app.state.config = config
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )

    @app.on_event("startup")
    async def startup():
        configure_logging(config.log_level, config.log_format)

        # Plan and media stores: SQLite for local dev and tests, PostgreSQL otherwise
        app.state.db = None
        if config.database.is_sqlite:
            store: BasePlanStore = SQLitePlanStore(config.database.sqlite_path)
            media_store: BaseMediaStore = SQLiteMediaStore(config.database.sqlite_path)
        else:
            app.state.db = await init_database(
                config.database.url,
                min_size=config.database.min_pool_size,
                max_size=config.database.max_pool_size,
            )
            store = PostgresPlanStore(app.state.db)
            media_store = PostgresMediaStore(app.state.db)
        await store.init()
        await media_store.init()
        app.state.plan_store = store
        app.state.media_store = media_store

        app.state.promo_validator = PromoValidator.from_config(config.promo_codes)

        # Upload backends
        app.state.cloud_storage = None
        if config.cloudinary.is_configured:
            app.state.cloud_storage = CloudinaryStorage(
                config.cloudinary.cloud_name,
                config.cloudinary.api_key,
                config.cloudinary.api_secret,
            )
        else:
            logger.warning("Cloudinary not configured; uploads go to local storage only")
        os.makedirs(config.local_storage.upload_dir, exist_ok=True)
        app.state.local_storage = LocalDiskStorage(
            config.local_storage.upload_dir,
            config.local_storage.public_url_prefix,
        )

        logger.info(f"Storefront started ({'sqlite' if config.database.is_sqlite else 'postgresql'} catalog)")

    @app.on_event("shutdown")
    async def shutdown():
        if getattr(app.state, "plan_store", None):
            await app.state.plan_store.close()
        if getattr(app.state, "media_store", None):
            await app.state.media_store.close()
        if getattr(app.state, "db", None):
            await app.state.db.close()
        logger.info("Storefront shut down")

    @app.get("/api/health")
    async def health():
        """Health check endpoint."""
        store_ok = getattr(app.state, "plan_store", None) is not None
        return {
            "status": "healthy" if store_ok else "starting",
            "service": "storefront",
            "version": __version__,
        }

    app.include_router(plans.router)
    app.include_router(promo.router)
    app.include_router(uploads.router)
    app.include_router(auth.router)
    app.include_router(admin_plans.router)
    app.include_router(admin_media.router)

    # Files stored by the local upload backend; the directory is created at startup
    app.mount(
        config.local_storage.public_url_prefix,
        StaticFiles(directory=config.local_storage.upload_dir, check_dir=False),
        name="uploads",
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
