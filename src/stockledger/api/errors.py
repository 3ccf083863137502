"""Map ledger errors onto HTTP responses.

Builds on Protean's FastAPI handlers and pins the statuses the inventory API
promises: a missing record is 404, a stock shortfall is 409 and any other
validation failure is 400.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from stockledger.stock.exceptions import InsufficientStockError

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, exc) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": getattr(exc, "messages", str(exc))})


def register_exception_handlers(app: FastAPI) -> None:
    register_protean_handlers(app)

    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(InsufficientStockError)
    async def insufficient_stock_handler(request: Request, exc: InsufficientStockError):
        logger.info("Stock request refused", path=request.url.path, error=exc.messages)
        return _error_response(409, exc)

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return _error_response(400, exc)
