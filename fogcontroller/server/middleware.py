import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from fogcontroller.core.errors import FogControllerError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.response import GENERIC_ERROR_MESSAGE, failure_response

logger = setup_logger(__name__, include_location=True)


async def fog_controller_error_handler(request: Request, exc: FogControllerError) -> JSONResponse:
    """Typed application errors: failure envelope with the status code of their kind."""
    logger.warning(f"{request.method} {request.url.path}: {exc.kind.value}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=failure_response(exc.message))


async def catch_exceptions_middleware(request: Request, call_next):
    start_time = time.time()
    try:
        response: Response = await call_next(request)
        process_time_sec = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} ({round(process_time_sec, 3)}): status_code: {response.status_code}")
        return response
    except Exception as err:
        process_time_sec = time.time() - start_time
        logger.exception(
            f"{request.method} {request.url.path} ({round(process_time_sec, 3)}): "
            f"App crashed with error: {err!r}"
        )
        return PlainTextResponse(content=GENERIC_ERROR_MESSAGE, status_code=500)
