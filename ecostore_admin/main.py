# ecostore_admin/main.py
from fastapi import FastAPI
import logging
from contextlib import asynccontextmanager

from ecostore_admin.config import settings
from ecostore_admin.api.deps import registry, close_gateway
from ecostore_admin.api.routes import product_forms as product_form_routes
from ecostore_admin.api.routes import products as product_routes
from ecostore_admin.middleware.cors_config import configure_cors
from ecostore_admin.middleware.security_headers import add_security_headers


logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup checks before serving; on shutdown every open product form is
    torn down so no preview files outlive the process.
    """
    try:
        settings.PREVIEW_DIR.mkdir(parents=True, exist_ok=True)
        logger.info("Preview directory: %s", settings.PREVIEW_DIR)
    except OSError as e:
        logger.warning("Cannot create preview directory %s: %s", settings.PREVIEW_DIR, e)
    logger.info("Storefront backend: %s", settings.BACKEND_URL)

    yield

    closed = registry.close_all()
    if closed:
        logger.info("Closed %d open product form(s)", closed)
    await close_gateway()
    logger.info("Shutting down Eco Stationery Admin API")


app = FastAPI(title="Eco Stationery Admin API", version="0.1.0", lifespan=lifespan)
configure_cors(app)
add_security_headers(app)

app.include_router(product_form_routes.router)
app.include_router(product_routes.router)


@app.get("/", tags=["root"])
async def root():
    return {"status": "ok", "service": "Eco Stationery Admin API", "open_forms": len(registry)}
