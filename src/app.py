"""Registrar FastAPI application.

Processes commands synchronously via HTTP. Every request runs inside the
registrar domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - unset/"test"  → in-memory stores, sync event processing
#   - "production"  → postgresql, message_db event store, redis broker,
#                     async event processing (handlers via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from registrar.domain import registrar
from registrar.utils.logging import bind_request_context, clear_request_context, get_logger

registrar.init()

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Registrar API",
    description="Course, event and membership registration with pricing and fulfillment",
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
    """Push the registrar domain context and bind request logging context."""
    bind_request_context(method=request.method, path=request.url.path)
    try:
        with registrar.domain_context():
            return await call_next(request)
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers & error handlers
# ---------------------------------------------------------------------------
from registrar.api.errors import register_error_handlers  # noqa: E402
from registrar.api.routes import (  # noqa: E402
    checkout_router,
    order_router,
    organizer_router,
    payment_router,
    person_router,
    waitlist_router,
)

app.include_router(organizer_router)
app.include_router(person_router)
app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(waitlist_router)

register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": registrar.name})
