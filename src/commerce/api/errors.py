"""Exception → HTTP response mapping for the commerce API.

Protean's own handlers are registered first; the handlers here then take
over validation and lookup errors (to fix the response body) and add the
commerce taxonomy: forbidden, stale state, duplicates and upstream failures.
"""

import traceback

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from commerce.config import get_settings
from commerce.errors import CommerceError, UpstreamError
from commerce.fulfillment.courier.port import CourierError

logger = structlog.get_logger(__name__)


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.messages})


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc) or "Not found"})


async def _commerce_error(request: Request, exc: CommerceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.payload})


async def _upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    status = 502
    if isinstance(exc, CourierError) and exc.not_found:
        status = 404
    logger.warning(
        "Upstream failure",
        path=request.url.path,
        error=exc.message,
        upstream_status=exc.upstream_status,
    )
    return JSONResponse(status_code=status, content={"error": exc.message, "upstream": exc.upstream})


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    content = {"error": "Internal server error"}
    if get_settings().debug:
        content["detail"] = str(exc)
        content["traceback"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=500, content=content)


def register_commerce_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(CommerceError, _commerce_error)
    app.add_exception_handler(UpstreamError, _upstream_error)
    app.add_exception_handler(Exception, _unexpected_error)
