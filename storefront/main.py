from fastapi import FastAPI
from storefront.core.config import get_settings
from storefront.core.lifespan import lifespan
from storefront.api.v1.routers.health import router as health_router
from storefront.api.v1.routers.auth import router as auth_router
from storefront.api.v1.routers.products import router as products_router
from storefront.api.v1.routers.cart import router as cart_router
from storefront.api.v1.routers.checkout import router as checkout_router
from storefront.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import logging, os

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. "https://shop.example.com,https://www.shop.example.com"
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["http://localhost:5173"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["x-guest-id"],                  # browsers must be able to persist a minted guest id
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(products_router, prefix=settings.api_prefix)
app.include_router(cart_router, prefix=settings.api_prefix)
app.include_router(checkout_router, prefix=settings.api_prefix)
