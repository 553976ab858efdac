from contextlib import asynccontextmanager
import logging
import os

import aiohttp
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status

from log_shipper.routes.logs import router as logs_router
from log_shipper.services.config import FlyConfigError
from log_shipper.services.fly_api_service import FlyApiError, FlyNotFoundError
from log_shipper.services.prompt_service import UserInputError
from log_shipper.services.setup.add_on_setup_service import UnsupportedAddOnProviderError


logger = logging.getLogger(__name__)


def _log_level() -> int:
    debug = (os.getenv("LOG_SHIPPER_DEBUG") or "").strip().lower()
    return logging.DEBUG if debug in {"1", "true", "yes", "on"} else logging.INFO


def _ensure_logging() -> None:
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    level = _log_level()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    else:
        root.setLevel(level)
        for handler in root.handlers:
            handler.setFormatter(formatter)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _ensure_logging()
    app.state.http_session = aiohttp.ClientSession()
    try:
        yield
    finally:
        await app.state.http_session.close()


app = FastAPI(lifespan=lifespan)

app.include_router(logs_router)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(UserInputError)
async def user_input_error_handler(request: Request, exc: UserInputError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(UnsupportedAddOnProviderError)
async def unsupported_provider_error_handler(request: Request, exc: UnsupportedAddOnProviderError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(FlyConfigError)
async def fly_config_error_handler(request: Request, exc: FlyConfigError) -> JSONResponse:
    logger.error("Fly API is not configured: %s", exc)
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


@app.exception_handler(FlyNotFoundError)
async def fly_not_found_error_handler(request: Request, exc: FlyNotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(FlyApiError)
async def fly_api_error_handler(request: Request, exc: FlyApiError) -> JSONResponse:
    """Map Fly API failures to a consistent HTTP response.

    The message is surfaced verbatim so the operator sees which step failed.
    Resources created by earlier steps are not rolled back, so the request can
    simply be retried.

    Returns:
        502 Bad Gateway with a JSON body: {"detail": "..."}
    """
    return _error_response(status.HTTP_502_BAD_GATEWAY, exc)


@app.get("/")
async def root():
    return {"message": "Hello World! Log shipper provisioning is running."}
