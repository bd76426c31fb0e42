"""AquaCart FastAPI application.

Ordering web server that processes commands synchronously via HTTP.
Each request runs inside the ordering domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"  fake gateway and carrier
#   - anything else  Razorpay and Shipmozo; a missing key secret stops startup
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.domain import ordering
from ordering.integrations import bind_integrations, build_integrations
from ordering.utils.logging import add_context, clear_context, get_logger

logger = get_logger(__name__)

ordering.init()

# Gateway and carrier clients are built once, before the first request
bind_integrations(ordering, build_integrations(ordering))


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="AquaCart API",
    description="Water purifier store: carts, orders, payments and shipments",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_DOMAIN_PREFIXES = ("/carts", "/orders")


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context and tag log lines with a request id."""
    if not request.url.path.startswith(_DOMAIN_PREFIXES):
        # Health check, docs, etc.
        return await call_next(request)

    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    add_context(request_id=request_id, path=request.url.path)
    try:
        with ordering.domain_context():
            response = await call_next(request)
    finally:
        clear_context()

    response.headers["X-Request-ID"] = request_id
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import cart_router, order_router, register_integration_error_handlers  # noqa: E402

register_integration_error_handlers(app)
app.include_router(cart_router)
app.include_router(order_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    integrations = ordering.integrations
    return JSONResponse(
        content={
            "status": "ok",
            "domain": ordering.name,
            "gateway": type(integrations.gateway).__name__,
            "carrier": type(integrations.carrier).__name__,
        }
    )
