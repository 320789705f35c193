"""
Configuration endpoints for API v1.

``/config`` exchanges the whole IPBan XML document as raw text.
``/config/settings`` reads and updates the allow-listed quick settings
as a JSON object of ``{key: value}`` pairs.  Keys outside the
allow-list are ignored, and settings that do not already exist in the
document are never created.
"""

import asyncio
from typing import Dict, Optional

from fastapi import APIRouter, Body, Depends, Request, Response

from ipban_webui.app.api.deps import get_config_service
from ipban_webui.app.core.errors import InvalidInput
from ipban_webui.app.schemas.ipban import OperationResult
from ipban_webui.app.services.config_service import ConfigService

router = APIRouter()


@router.get("", response_class=Response)
def get_config(service: ConfigService = Depends(get_config_service)) -> Response:
    """Return the configuration document, or an empty body if there is none."""
    return Response(content=service.read_raw(), media_type="application/xml")


@router.post("", response_model=OperationResult, response_model_exclude_none=True)
async def set_config(request: Request, service: ConfigService = Depends(get_config_service)) -> OperationResult:
    """Replace the configuration document with the request body.

    The body must be well-formed XML; otherwise HTTP 400 is returned
    and the current document is left unchanged.
    """
    raw = await request.body()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidInput(f"Request body is not valid UTF-8: {exc}") from exc
    # staging and replacing the file is blocking I/O
    await asyncio.to_thread(service.write_raw, text)
    return OperationResult(success=True)


@router.get("/settings", response_model=Dict[str, str])
def get_quick_settings(service: ConfigService = Depends(get_config_service)) -> Dict[str, str]:
    """Return the quick settings present in the document."""
    return service.get_quick_settings()


@router.post("/settings", response_model=OperationResult, response_model_exclude_none=True)
def set_quick_settings(
    updates: Dict[str, Optional[str]] = Body(...),
    service: ConfigService = Depends(get_config_service),
) -> OperationResult:
    """Update quick settings in place.

    Returns HTTP 400 if no settings are given and HTTP 404 if there is
    no configuration document yet.
    """
    service.set_quick_settings(updates)
    return OperationResult(success=True)
