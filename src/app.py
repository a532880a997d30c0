"""Marketplace FastAPI application.

Processes commands synchronously per HTTP request inside the marketplace
domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay:
#   - "test"       → event_processing = "sync"  (notifications fire after commit, inline)
#   - "production" → event_processing = "async" (notifications fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from marketplace.domain import marketplace
from marketplace.utils.logging import add_context, clear_context, configure_logging

configure_logging()
marketplace.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Multi-vendor marketplace — carts, checkout, orders and payments",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the marketplace domain context and bind the caller to log lines."""
    clear_context()
    add_context(path=request.url.path, user_id=request.headers.get("x-user-id"))
    with marketplace.domain_context():
        return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from marketplace.api import (  # noqa: E402
    admin_order_router,
    cart_router,
    inventory_router,
    order_router,
    payment_router,
    register_error_handlers,
)

app.include_router(cart_router)
app.include_router(order_router)
app.include_router(admin_order_router)
app.include_router(payment_router)
app.include_router(inventory_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": marketplace.name})
