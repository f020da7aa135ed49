"""HTTP translation for collaborator failures.

Input validation and not-found errors are translated by Protean's own
FastAPI handlers; this module adds the bridge's external-failure cases.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from bridge.exceptions import CatalogError, InvoiceIssuerError, IssuerTimeout

logger = structlog.get_logger(__name__)


async def _issuer_timeout(request: Request, exc: IssuerTimeout) -> PlainTextResponse:
    logger.error("issuer_timeout", path=request.url.path, error=str(exc))
    return PlainTextResponse("invoice_processor_timeout", status_code=504)


async def _issuer_failure(request: Request, exc: InvoiceIssuerError) -> PlainTextResponse:
    logger.error("issuer_failure", path=request.url.path, error=str(exc))
    return PlainTextResponse("invoice_processor_error", status_code=502)


async def _catalog_failure(request: Request, exc: CatalogError) -> PlainTextResponse:
    logger.error("catalog_failure", path=request.url.path, error=str(exc))
    return PlainTextResponse("order_catalog_error", status_code=502)


async def _unexpected(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return PlainTextResponse("server_error", status_code=500)


def register_bridge_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IssuerTimeout, _issuer_timeout)
    app.add_exception_handler(InvoiceIssuerError, _issuer_failure)
    app.add_exception_handler(CatalogError, _catalog_failure)
    app.add_exception_handler(Exception, _unexpected)
