import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from commerce.api import ROUTERS, register_commerce_error_handlers
from commerce.domain import commerce


@pytest.fixture()
def api_app():
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with commerce.domain_context():
            response = await call_next(request)
        return response

    for router in ROUTERS:
        app.include_router(router)
    register_commerce_error_handlers(app)
    return app


@pytest.fixture()
def client(api_app):
    return TestClient(api_app)
