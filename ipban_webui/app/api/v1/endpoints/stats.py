"""
Statistics endpoint for API v1.

Returns the dashboard counters: how many addresses the IPBan database
holds, how many of them are banned and how many only have failed
logins.  All counters are zero when the database does not exist yet.
"""

from fastapi import APIRouter, Depends

from ipban_webui.app.api.deps import get_database_service
from ipban_webui.app.schemas.ipban import IPBanStats
from ipban_webui.app.services.database_service import IPBanDatabaseService

router = APIRouter()


@router.get("", response_model=IPBanStats)
def get_stats(service: IPBanDatabaseService = Depends(get_database_service)) -> IPBanStats:
    """Return total, banned and failed-login counts."""
    return service.get_stats()
