"""
Top-level router for version 1 of the API.

This router aggregates the domain routers (statistics, IP addresses,
configuration) under a unified prefix.  When new endpoints are added,
update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import config, ipaddresses, stats

# Create a router for version 1 and include sub-routers for each domain.
router = APIRouter()

router.include_router(stats.router, prefix="/stats", tags=["statistics"])
# ``/banned``, ``/failed`` and ``/unban`` live at the version root.
router.include_router(ipaddresses.router, tags=["ip addresses"])
router.include_router(config.router, prefix="/config", tags=["config"])
