# tests/conftest.py
from __future__ import annotations

import sqlite3
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

import pytest
from starlette.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ipban_webui.app.core.config import Settings  # noqa: E402
from ipban_webui.app.core.db import SCHEMA_SQL, to_unix_ms  # noqa: E402
from ipban_webui.app.core.scratch import ScratchSpace  # noqa: E402
from ipban_webui.app.main import create_app  # noqa: E402


SAMPLE_CONFIG = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    "<configuration>\n"
    "  <!-- IPBan settings -->\n"
    "  <appSettings>\n"
    '    <add key="FailedLoginAttemptsBeforeBan" value="5" />\n'
    '    <add key="BanTime" value="1.00:00:00"/>\n'
    "    <add key='FirewallRulePrefix' value='IPBan_' />\n"
    '    <add key="Whitelist" value="" />\n'
    '    <add key="SomethingElse" value="keep" />\n'
    '    <add key="BanTime" value="should-not-change" />\n'
    "  </appSettings>\n"
    "  <nlog><targets/></nlog>\n"
    "</configuration>\n"
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def entry(
    ip: str,
    last_failed_login: datetime,
    ban_date: Optional[datetime] = None,
    failed_login_count: int = 1,
) -> dict:
    return {
        "ip": ip,
        "last_failed_login": last_failed_login,
        "ban_date": ban_date,
        "failed_login_count": failed_login_count,
    }


def create_store(path: Path, entries: Iterable[dict] = ()) -> Path:
    """Create an IPBan database at ``path`` holding ``entries`` in order."""
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(SCHEMA_SQL)
        for e in entries:
            conn.execute(
                "INSERT INTO IPAddresses (IPAddressText, LastFailedLogin, FailedLoginCount, BanDate, State)"
                " VALUES (?, ?, ?, ?, ?)",
                (
                    e["ip"],
                    to_unix_ms(e["last_failed_login"]),
                    e["failed_login_count"],
                    to_unix_ms(e["ban_date"]),
                    1 if e["ban_date"] else 0,
                ),
            )
        conn.commit()
    finally:
        conn.close()
    return path


EXAMPLE_ENTRIES = [
    entry("1.1.1.1", utc(2024, 1, 1), ban_date=utc(2024, 1, 1)),
    entry("2.2.2.2", utc(2024, 2, 1), ban_date=utc(2024, 2, 1)),
    entry("3.3.3.3", utc(2024, 3, 1)),
]


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        config_path=str(tmp_path / "ipban.config"),
        database_path=str(tmp_path / "ipban.sqlite"),
        scratch_dir=str(tmp_path / "scratch"),
        log_level="WARNING",
    )


@pytest.fixture()
def example_store(settings: Settings) -> Path:
    return create_store(Path(settings.database_path), EXAMPLE_ENTRIES)


@pytest.fixture()
def config_file(settings: Settings) -> Path:
    path = Path(settings.config_path)
    path.write_bytes(SAMPLE_CONFIG.encode("utf-8"))
    return path


@pytest.fixture()
def scratch(settings: Settings):
    space = ScratchSpace(settings.resolved_scratch_dir())
    space.setup()
    yield space
    space.teardown()


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
