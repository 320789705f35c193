"""
Pydantic schemas for the IPBan database views.

Field names follow Python conventions; the JSON representation uses
the camelCase names the dashboard front-end expects (``ipAddress``,
``banStartDate``, ``pageSize``...).  Responses are serialized by alias,
and requests accept either spelling.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


T = TypeVar("T")


class IPAddressEntry(BaseModel):
    """One row of the IPBan database.

    An entry with ``ban_start_date`` set is currently banned; an entry
    without it only has failed-login history.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ip_address: str = Field(..., alias="ipAddress", examples=["203.0.113.7"])
    last_failed_login: datetime = Field(..., alias="lastFailedLogin")
    failed_login_count: int = Field(0, alias="failedLoginCount")
    ban_start_date: Optional[datetime] = Field(None, alias="banStartDate")
    ban_end_date: Optional[datetime] = Field(None, alias="banEndDate")
    state: int = Field(0, description="Ban engine state flag, passed through unchanged")
    user_name: Optional[str] = Field(None, alias="userName")
    source: Optional[str] = None

    @property
    def is_banned(self) -> bool:
        return self.ban_start_date is not None


class IPBanStats(BaseModel):
    """Dashboard statistics."""

    model_config = ConfigDict(populate_by_name=True)

    total_ips: int = Field(0, alias="totalIPs", description="Total IP addresses in the database")
    banned_ips: int = Field(0, alias="bannedIPs", description="Currently banned IP addresses")
    failed_login_ips: int = Field(
        0,
        alias="failedLoginIPs",
        description="IP addresses with failed logins but not yet banned",
    )


class PagedResult(BaseModel, Generic[T]):
    """One page of an ordered result set plus the size of the full set."""

    model_config = ConfigDict(populate_by_name=True)

    items: List[T] = Field(default_factory=list)
    total: int = 0
    page: int = Field(1, description="Current page (1-based)")
    page_size: int = Field(10, alias="pageSize")


class UnbanRequest(BaseModel):
    """Request body for ``POST /unban``."""

    model_config = ConfigDict(populate_by_name=True)

    ip_address: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("ipAddress", "IPAddress", "ip_address"),
    )


class OperationResult(BaseModel):
    """Generic acknowledgement returned by write endpoints."""

    success: bool = True
    message: Optional[str] = None
