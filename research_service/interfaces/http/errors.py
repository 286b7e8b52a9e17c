import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from ...application.errors import PersistenceError

logger = structlog.get_logger()


class PersistenceFailure(Exception):
    """Raised by handlers to turn a failed store call into a 500 response."""

    def __init__(self, message: str, cause: PersistenceError):
        super().__init__(message)
        self.message = message
        self.cause = cause


def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
    logger.error(
        "request_failed",
        path=request.url.path,
        message=exc.message,
        operation=exc.cause.operation,
        error=str(exc.cause),
    )
    detail = {"message": exc.message}
    if request.app.state.settings.EXPOSE_ERROR_DETAILS:
        detail["error"] = str(exc.cause)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": detail})
