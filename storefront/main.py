import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import settings
from storefront.database import create_db_and_tables
from storefront.routes import (
    addresses,
    auth,
    cart,
    health,
    orders,
    payments,
    products,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local; other environments use alembic
    if settings.env == "local":
        create_db_and_tables()
    logger.info(f"Storefront API started (env={settings.env})")
    yield


app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api/health", tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(addresses.router, prefix="/api/addresses", tags=["Addresses"])
app.include_router(payments.router, prefix="/api/payment", tags=["Payment"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])


@app.get("/")
def root():
    return {
        "health": ["/api/health"],
        "auth_endpoints": ["/api/auth/register", "/api/auth/login", "/api/auth/me"],
        "products": ["/api/products", "/api/products/{product_id}"],
        "cart": ["/api/cart", "/api/cart/items", "/api/cart/items/{item_id}"],
        "addresses": [
            "/api/addresses", "/api/addresses/{address_id}",
            "/api/addresses/{address_id}/default"
        ],
        "payment": [
            "/api/payment/create-intent", "/api/payment/create-order",
            "/api/payment/webhook", "/api/payment/order/{order_id}"
        ],
        "orders": [
            "/api/orders/create-order", "/api/orders", "/api/orders/{order_id}",
            "/api/orders/public/{order_id}", "/api/orders/{order_id}/status"
        ],
    }
