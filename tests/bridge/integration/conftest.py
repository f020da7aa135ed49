import pytest
from bridge.api import (
    ipn_router,
    osr_router,
    page_router,
    register_bridge_exception_handlers,
    webhook_router,
)
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client(collaborators):
    app = FastAPI()
    app.include_router(osr_router)
    app.include_router(ipn_router)
    app.include_router(webhook_router)
    app.include_router(page_router)
    register_exception_handlers(app)
    register_bridge_exception_handlers(app)
    return TestClient(app, follow_redirects=False)
