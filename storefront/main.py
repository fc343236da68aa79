"""
Storefront Service Application

Buyer-facing cart and checkout for the cooperative marketplace.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from .core.config import settings
from .routes import cart_router, checkout_router, orders_router
from .routes import dependencies

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront starting up...")
    logger.info(f"Marketplace API: {settings.marketplace_api_url}")
    logger.info(f"Marketplace auth configured: {settings.auth_configured}")

    # Create the shared client before requests arrive on worker threads
    dependencies.get_marketplace_client()
    get_manager = app.dependency_overrides.get(
        dependencies.get_session_manager, dependencies.get_session_manager
    )
    app.state.session_cleanup = asyncio.create_task(get_manager().run_cleanup())

    yield

    logger.info("Storefront shutting down...")
    app.state.session_cleanup.cancel()
    with suppress(asyncio.CancelledError):
        await app.state.session_cleanup
    if dependencies.session_manager:
        await dependencies.session_manager.close_all()
    if dependencies.marketplace_client:
        await dependencies.marketplace_client.close()
        dependencies.marketplace_client = None


# Create FastAPI app
app = FastAPI(
    title="Cooperative Storefront",
    description="Cart and checkout for the cooperative marketplace",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-Id"],
)

# Include routers
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(orders_router)


@app.get("/")
async def home():
    return {
        "message": "Cooperative Storefront API",
        "docs": "/docs",
        "endpoints": {
            "cart": "/api/cart",
            "checkout": "/api/checkout",
            "orders": "/api/orders",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront",
        "marketplace_api": settings.marketplace_api_url,
        "marketplace_auth_configured": settings.auth_configured,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
