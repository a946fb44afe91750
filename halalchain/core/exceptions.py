from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class LedgerError(HTTPException):
    """
    Base class for every failure raised by the ledger services.

    Each subclass carries its own HTTP status so services can raise it
    directly, the same way they raise HTTPException elsewhere. The `kind`
    is surfaced to callers alongside the triggering condition.
    """
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.kind}: {self.detail}"


class Unauthorized(LedgerError):
    """Caller lacks the required role or ownership."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND


class AlreadyExists(LedgerError):
    status_code = status.HTTP_409_CONFLICT


class InvalidArgument(LedgerError):
    """Empty string, blank or self-referential identity, or disallowed recipient."""
    status_code = 422


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.detail},
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed payloads and parameters are reported like any other
    InvalidArgument, naming the first offending field.
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=InvalidArgument.status_code,
        content={
            "error": InvalidArgument.__name__,
            "detail": f"{field}: {message}" if field else message,
        },
    )
