"""Mapping from core exceptions to HTTP error responses."""

from fastapi.responses import JSONResponse

from eva.exceptions import (
    AuthError,
    EvaError,
    ExchangeError,
    MissingCredentialsError,
    PriceUnavailableError,
)


def error_response(error: EvaError) -> JSONResponse:
    if isinstance(error, MissingCredentialsError):
        status = 400
    elif isinstance(error, AuthError):
        status = 401
    elif isinstance(error, PriceUnavailableError):
        status = 409
    elif isinstance(error, ExchangeError):
        status = 502
    else:
        status = 500
    return JSONResponse(
        status_code=status,
        content={"error": type(error).__name__, "detail": str(error)},
    )
