from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.core.config import settings
from storefront.models import Base  # noqa: F401 - register models
from storefront.routers import campaigns, cron, health, orders, products, storefront, stores, webhooks

app = FastAPI(
    title="Squadra Storefront API",
    description="Group-buying storefronts: campaigns, variant matrices, checkout and fulfillment",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/health")
app.include_router(stores.router, prefix="/stores")
app.include_router(campaigns.router, prefix="/campaigns")
app.include_router(products.router)
app.include_router(orders.router, prefix="/orders")
app.include_router(storefront.router, prefix="/storefront")
app.include_router(webhooks.router, prefix="/webhooks")
app.include_router(cron.router, prefix="/cron")
