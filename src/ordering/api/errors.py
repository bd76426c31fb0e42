"""HTTP mapping for payment gateway and carrier failures.

Protean's own exceptions are mapped by ``register_exception_handlers``; this
adds the adapter errors with the same ``{"error": ...}`` body.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fulfillment.carrier.port import CarrierError
from ordering.utils.logging import get_logger
from payments.gateway.port import GatewayConfigError, GatewayError

logger = get_logger(__name__)


def register_integration_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayConfigError)
    async def gateway_config_error_handler(request: Request, exc: GatewayConfigError) -> JSONResponse:
        logger.error("payment_gateway_misconfigured", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        logger.warning("payment_gateway_failed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.exception_handler(CarrierError)
    async def carrier_error_handler(request: Request, exc: CarrierError) -> JSONResponse:
        logger.warning("carrier_failed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=502, content={"error": str(exc)})
