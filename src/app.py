"""Crypto bridge FastAPI application.

Serves invoice resolution, processor notifications, storefront webhooks
and the customer-facing pay pages. Commands are processed synchronously
inside a Protean domain context pushed for every request.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8080
"""

from uuid import uuid4

from dotenv import load_dotenv

# Settings and adapters read the environment lazily; load .env before anything asks
load_dotenv()

from bridge.domain import bridge  # noqa: E402
from bridge.utils.logging import bind_request_context, clear_request_context, configure_logging  # noqa: E402
from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import HTMLResponse, JSONResponse  # noqa: E402
from protean.integrations.fastapi import register_exception_handlers  # noqa: E402

configure_logging()

# PROTEAN_ENV selects the mapping store provider (memory / sqlite / postgresql)
bridge.init()

app = FastAPI(
    title="Crypto Bridge",
    description="Crypto invoices and payment reconciliation for storefront orders",
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the bridge domain context and bind request-scoped log context."""
    clear_request_context()
    bind_request_context(request_id=request.headers.get("x-request-id") or uuid4().hex, path=request.url.path)
    with bridge.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from bridge.api import (  # noqa: E402
    ipn_router,
    osr_router,
    page_router,
    register_bridge_exception_handlers,
    webhook_router,
)
from bridge.api.pages import index_page  # noqa: E402

app.include_router(osr_router)
app.include_router(ipn_router)
app.include_router(webhook_router)
app.include_router(page_router)

register_exception_handlers(app)
register_bridge_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/", response_class=HTMLResponse)
async def root():
    return HTMLResponse(index_page())


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": bridge.name})
