"""
IP address endpoints for API v1.

``/banned`` and ``/failed`` page through the IPBan database; ``/unban``
removes an address from it.  Paging parameters are clamped rather than
rejected: ``page`` to at least 1 and ``pageSize`` to 10..200.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from ipban_webui.app.api.deps import get_database_service
from ipban_webui.app.core.errors import InvalidInput, ResourceNotFound
from ipban_webui.app.schemas.ipban import IPAddressEntry, OperationResult, PagedResult, UnbanRequest
from ipban_webui.app.services.database_service import IPBanDatabaseService

router = APIRouter()


@router.get("/banned", response_model=PagedResult[IPAddressEntry])
def list_banned(
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    service: IPBanDatabaseService = Depends(get_database_service),
) -> PagedResult:
    """Banned addresses, most recently banned first."""
    return service.get_banned_ips(page, page_size)


@router.get("/failed", response_model=PagedResult[IPAddressEntry])
def list_failed(
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    service: IPBanDatabaseService = Depends(get_database_service),
) -> PagedResult:
    """Addresses with failed logins that are not banned, most recent failure first."""
    return service.get_failed_login_ips(page, page_size)


@router.post("/unban", response_model=OperationResult, response_model_exclude_none=True)
def unban(
    req: Optional[UnbanRequest] = Body(None),
    service: IPBanDatabaseService = Depends(get_database_service),
) -> OperationResult:
    """Remove an address from the database.

    Returns HTTP 400 if no address is given and HTTP 404 if the
    address is not in the database.
    """
    if req is None or not req.ip_address or not req.ip_address.strip():
        raise InvalidInput("IP address is required.")
    if not service.delete_ip(req.ip_address):
        raise ResourceNotFound("IP not found.")
    return OperationResult(success=True)
