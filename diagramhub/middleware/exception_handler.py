"""Exception handlers mapping the error taxonomy to HTTP responses."""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..exceptions import DiagramHubError, ErrorCode

logger = logging.getLogger(__name__)


async def diagramhub_exception_handler(request: Request, exc: DiagramHubError) -> JSONResponse:
    """Render a DiagramHubError. Client errors log at INFO, server failures at ERROR.

    Server failures are logged with their traceback, which includes the
    driver error that caused them; the response body never does.
    """
    server_error = exc.status_code >= 500
    logger.log(
        logging.ERROR if server_error else logging.INFO,
        "%s %s failed: %s",
        request.method,
        request.url.path,
        exc.message,
        extra={"error_code": exc.error_code.value, "status_code": exc.status_code, "details": exc.details},
        exc_info=exc if server_error else None,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are Validation errors (400)."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": ErrorCode.VALIDATION_ERROR.value,
            "message": "Request validation failed",
            "details": {"errors": errors},
        },
    )
