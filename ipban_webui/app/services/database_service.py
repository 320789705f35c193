"""
Service layer for the IPBan database.

Provides the dashboard statistics, paged lists of banned and
failed-login addresses, and unbanning (deleting an address from the
database).  Every call opens its own short-lived handle and closes it
before returning; nothing is cached between requests.

A missing database file is normal on a freshly installed system, so
read methods return zero/empty results in that case instead of
raising.
"""

from __future__ import annotations

import logging
from typing import Optional

from ipban_webui.app.core.config import Settings
from ipban_webui.app.core.db import IPBanDB, open_store
from ipban_webui.app.schemas.ipban import IPAddressEntry, IPBanStats, PagedResult
from ipban_webui.app.services.pagination import empty_page, paginate


def _is_banned(entry: IPAddressEntry) -> bool:
    return entry.is_banned


def _is_failed_login(entry: IPAddressEntry) -> bool:
    return not entry.is_banned


class IPBanDatabaseService:
    """Service for reading IPBan database information."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _open(self, writable: bool = False) -> Optional[IPBanDB]:
        return open_store(self._settings.database_path, writable=writable)

    def get_stats(self) -> IPBanStats:
        """Return total, banned and failed-login counts from a single scan."""
        db = self._open()
        if db is None:
            return IPBanStats()
        banned = 0
        failed_login = 0
        with db:
            for entry in db.enumerate_ip_addresses():
                if _is_banned(entry):
                    banned += 1
                else:
                    failed_login += 1
        return IPBanStats(
            total_ips=banned + failed_login,
            banned_ips=banned,
            failed_login_ips=failed_login,
        )

    def get_banned_ips(self, page: int, page_size: int) -> PagedResult:
        """Banned addresses, most recently banned first."""
        db = self._open()
        if db is None:
            return empty_page(page, page_size)
        with db:
            return paginate(
                db.enumerate_ip_addresses(),
                _is_banned,
                lambda e: e.ban_start_date,
                page,
                page_size,
            )

    def get_failed_login_ips(self, page: int, page_size: int) -> PagedResult:
        """Addresses with failed logins but no ban, most recent failure first."""
        db = self._open()
        if db is None:
            return empty_page(page, page_size)
        with db:
            return paginate(
                db.enumerate_ip_addresses(),
                _is_failed_login,
                lambda e: e.last_failed_login,
                page,
                page_size,
            )

    def delete_ip(self, ip_address: str) -> bool:
        """Delete an IP address from the database.

        Returns ``True`` if the address existed and was removed, and
        ``False`` if it was not present or there is no database.
        """
        logger = logging.getLogger(__name__)
        ip_address = ip_address.strip()
        db = self._open(writable=True)
        if db is None:
            return False
        with db:
            removed = db.delete_ip_address(ip_address)
        if removed:
            logger.info("Unbanned %s", ip_address)
        else:
            logger.info("Unban requested for unknown address %s", ip_address)
        return removed
