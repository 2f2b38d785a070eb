"""
Storefront Offers - FastAPI Backend

Serves:
- GET /health                          : liveness
- GET /api/offers                      : active offers
- GET /api/offers/featured             : newest active offers
- GET /api/offers/status               : catalog status
- POST /api/offers/refresh             : manual refresh
- GET /api/products/{id}/offer         : best offer and price for a product
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.offer_engine import get_catalog, reset_catalog
from storefront.offer_engine.routes import router as offers_router

# --- Env / Config ---
load_dotenv()

APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("PORT", os.getenv("APP_PORT", "8000")))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# --- App ---
logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger("storefront")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the offer refresh loop for the lifetime of the app."""
    catalog = get_catalog()
    await catalog.start()
    try:
        yield
    finally:
        await catalog.stop()
        reset_catalog()


app = FastAPI(
    title="Storefront Offers",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(offers_router)


@app.get("/health")
async def health():
    """Simple health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storefront.main:app", host=APP_HOST, port=APP_PORT)
