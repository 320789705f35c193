"""
Read/delete access to the IPBan SQLite database.

The database is owned by the IPBan engine, which creates the file and
keeps it up to date.  This module never creates or migrates it: reads
open the file in read-only mode, deletes in read-write mode, and both
fail instead of creating an empty database when the file is missing.

``open_store`` is the entry point.  It returns ``None`` when the file
does not exist, which callers treat as "zero entries", and raises
``StorageError`` for genuine SQLite or filesystem failures.  The
returned ``IPBanDB`` handle is a context manager; use it in a ``with``
block so the connection is closed even if a scan is abandoned early.
"""

import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from .errors import StorageError
from ..schemas.ipban import IPAddressEntry


# Layout of the table maintained by the ban engine.  Timestamps are Unix
# epoch milliseconds in UTC; ``BanDate`` is the start of the current ban.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS IPAddresses (
    IPAddressText TEXT NOT NULL PRIMARY KEY,
    LastFailedLogin INTEGER NOT NULL,
    FailedLoginCount INTEGER NOT NULL DEFAULT 0,
    BanDate INTEGER NULL,
    State INTEGER NOT NULL DEFAULT 0,
    BanEndDate INTEGER NULL,
    UserName TEXT NULL,
    Source TEXT NULL
);
"""

_SELECT_ALL = (
    "SELECT IPAddressText, LastFailedLogin, FailedLoginCount, BanDate, State,"
    " BanEndDate, UserName, Source FROM IPAddresses ORDER BY rowid"
)


def from_unix_ms(value: Optional[int]) -> Optional[datetime]:
    """Convert a stored epoch-milliseconds value to an aware UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)


def to_unix_ms(value: Optional[datetime]) -> Optional[int]:
    """Inverse of :func:`from_unix_ms`; naive datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(round(value.timestamp() * 1000))


def _row_to_entry(row: sqlite3.Row) -> IPAddressEntry:
    return IPAddressEntry(
        ip_address=row["IPAddressText"],
        last_failed_login=from_unix_ms(row["LastFailedLogin"]),
        failed_login_count=row["FailedLoginCount"] or 0,
        ban_start_date=from_unix_ms(row["BanDate"]),
        ban_end_date=from_unix_ms(row["BanEndDate"]),
        state=row["State"] or 0,
        user_name=row["UserName"],
        source=row["Source"],
    )


class IPBanDB:
    """A short-lived handle on the IPBan database.

    Instances are created by :func:`open_store`; do not keep them
    beyond a single request.
    """

    def __init__(self, conn: sqlite3.Connection, path: str) -> None:
        self._conn = conn
        self.path = path

    def __enter__(self) -> "IPBanDB":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def enumerate_ip_addresses(self) -> Iterator[IPAddressEntry]:
        """Yield every entry lazily, in storage order."""
        try:
            cursor = self._conn.execute(_SELECT_ALL)
            for row in cursor:
                yield _row_to_entry(row)
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {self.path}: {exc}") from exc

    def delete_ip_address(self, ip_address: str) -> bool:
        """Delete one entry by address.  Returns ``True`` if a row was removed."""
        try:
            cursor = self._conn.execute(
                "DELETE FROM IPAddresses WHERE IPAddressText = ?", (ip_address,)
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to delete {ip_address} from {self.path}: {exc}") from exc
        return cursor.rowcount > 0


def open_store(path: str, writable: bool = False) -> Optional[IPBanDB]:
    """Open the database at ``path``.

    Parameters
    ----------
    path : str
        Filesystem path of the SQLite file.
    writable : bool
        Open in read-write mode (needed for deletes).  The file is
        never created in either mode.

    Returns
    -------
    Optional[IPBanDB]
        A handle, or ``None`` if the file does not exist.
    """
    if not os.path.isfile(path):
        logging.getLogger(__name__).debug("Database %s does not exist", path)
        return None
    mode = "rw" if writable else "ro"
    uri = f"{Path(path).resolve().as_uri()}?mode={mode}"
    try:
        conn = sqlite3.connect(uri, uri=True)
    except sqlite3.Error as exc:
        raise StorageError(f"Failed to open {path}: {exc}") from exc
    # Return rows as dict-like objects keyed by column name
    conn.row_factory = sqlite3.Row
    return IPBanDB(conn, path)
