"""Storefront orders FastAPI application.

Serves the commerce domain over HTTP. Every request runs inside the commerce
domain context; commands are processed synchronously.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
from commerce.api import ROUTERS, register_commerce_error_handlers  # noqa: E402
from commerce.config import get_settings  # noqa: E402
from commerce.domain import commerce  # noqa: E402
from commerce.utils.logging import configure_logging  # noqa: E402
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

settings = get_settings()
configure_logging(production=settings.is_production)
commerce.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Orders API",
    description="Order lifecycle, payments, fulfillment sync and returns",
    debug=settings.debug,
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
    """Push the commerce domain context for each request."""
    with commerce.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers and error handlers
# ---------------------------------------------------------------------------

for router in ROUTERS:
    app.include_router(router)

register_commerce_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": commerce.name,
            "environment": settings.environment,
        }
    )
