import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from storefront.core.config import BASE_DIR, settings
from storefront.api import products, cart, checkout, web

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=f"{settings.SHOP_NAME} - Storefront",
    description="Product catalog, session cart and simulated checkout",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Mount static files
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

# Session cookie holds the persisted cart
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    max_age=settings.SESSION_MAX_AGE
)

# Include API routers
app.include_router(products.router)
app.include_router(cart.router)
app.include_router(checkout.router)
app.include_router(web.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "shop_name": settings.SHOP_NAME
    }


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Unknown pages get the HTML not-found page, API routes keep JSON errors
    if exc.status_code == 404 and not request.url.path.startswith("/api"):
        return web.render_not_found(request)

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.SHOP_NAME} storefront")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down storefront")
    # Close catalog client
    from storefront.core.catalog_client import catalog_client
    await catalog_client.close()
