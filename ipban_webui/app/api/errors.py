"""
Translate service exceptions into HTTP responses.

Services raise the types from ``core.errors``; this module maps them
to status codes so endpoint functions can stay free of try/except
blocks.  Error bodies use the same ``{"success": false, "message": ...}``
shape as the write endpoints' acknowledgements.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..core.errors import InvalidInput, IPBanWebError, ResourceNotFound, StorageError


_STATUS_FOR = (
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (ResourceNotFound, status.HTTP_404_NOT_FOUND),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: IPBanWebError) -> int:
    for exc_type, code in _STATUS_FOR:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(IPBanWebError)
    async def ipban_error_handler(request: Request, exc: IPBanWebError) -> JSONResponse:
        code = status_for(exc)
        if code >= 500:
            logging.getLogger(__name__).error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=code, content={"success": False, "message": str(exc)})
