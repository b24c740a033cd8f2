"""Exception handler for structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import CanonException

logger = logging.getLogger(__name__)


async def canon_exception_handler(request: Request, exc: CanonException) -> JSONResponse:
    """
    Convert a CanonException into its JSON body and status code.

    Client errors (4xx) are logged at WARNING, server errors at ERROR.

    Args:
        request: FastAPI request object
        exc: CanonException instance

    Returns:
        JSONResponse with ``error``, ``message`` and ``details``
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"CanonException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
