"""
FastAPI dependencies shared by the endpoint modules.

``create_app`` stores the ``Settings`` and the ``ScratchSpace`` on
``app.state``; services are constructed per request from those.
"""

from fastapi import Depends, Request

from ..core.config import Settings
from ..core.scratch import ScratchSpace
from ..services.config_service import ConfigService
from ..services.database_service import IPBanDatabaseService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_scratch(request: Request) -> ScratchSpace:
    return request.app.state.scratch


def get_database_service(settings: Settings = Depends(get_settings)) -> IPBanDatabaseService:
    return IPBanDatabaseService(settings)


def get_config_service(
    settings: Settings = Depends(get_settings),
    scratch: ScratchSpace = Depends(get_scratch),
) -> ConfigService:
    return ConfigService(settings, scratch)
