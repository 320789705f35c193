"""
Service layer for the IPBan XML configuration document.

Two ways of editing the document are offered:

* whole-document exchange (``read_raw`` / ``write_raw``), used by the
  advanced editor, and
* quick settings (``get_quick_settings`` / ``set_quick_settings``),
  which read and update the ``value`` of a fixed allow-list of
  ``<add key="..." value="..."/>`` nodes in ``appSettings``.

The document is loaded by the IPBan engine's own config loader, which
expects a fixed shape.  Quick settings therefore only ever update
values of nodes that already exist: nothing is inserted, removed or
reordered, and every other byte of the file is preserved.

Writes are validated first and then persisted by staging the new text
in the scratch space and atomically replacing the live file, so a
rejected or failed write leaves the previous document untouched.
Concurrent writers are not serialized; the last replace wins.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from typing import Dict, Mapping, Optional

from ipban_webui.app.core.config import Settings
from ipban_webui.app.core.errors import InvalidInput, ResourceNotFound, StorageError
from ipban_webui.app.core.scratch import ScratchSpace
from ipban_webui.app.services.config_document import ConfigDocument


# Keys exposed through the quick settings endpoints.  Extending this list
# is an API change; keep it in sync with the front-end form.
QUICK_SETTINGS_KEYS = (
    "FailedLoginAttemptsBeforeBan",
    "BanTime",
    "ExpireTime",
    "CycleTime",
    "ResetFailedLoginCountForUnbannedIPAddresses",
    "ClearBannedIPAddressesOnRestart",
    "ClearFailedLoginsOnSuccessfulLogin",
    "ProcessInternalIPAddresses",
    "Whitelist",
    "WhitelistRegex",
    "Blacklist",
    "BlacklistRegex",
    "FailedLoginAttemptsBeforeBanUserNameWhitelist",
    "UserNameWhitelist",
    "FirewallRulePrefix",
)

_CANONICAL_KEYS = {key.lower(): key for key in QUICK_SETTINGS_KEYS}


def canonical_key(key: str) -> Optional[str]:
    """Return the allow-listed spelling of ``key`` (case-insensitive), or ``None``."""
    return _CANONICAL_KEYS.get(key.strip().lower())


class ConfigService:
    """Reads and writes the configuration document at ``settings.config_path``."""

    def __init__(self, settings: Settings, scratch: ScratchSpace) -> None:
        self._settings = settings
        self._scratch = scratch

    @property
    def path(self) -> str:
        return self._settings.config_path

    # ------------------------------------------------------------------
    # Whole-document exchange
    # ------------------------------------------------------------------
    def read_raw(self) -> str:
        """Return the document text verbatim, or ``""`` if there is no document."""
        text = self._read_document()
        return text if text is not None else ""

    def write_raw(self, text: str) -> None:
        """Replace the whole document after checking that it is well-formed XML.

        Raises
        ------
        InvalidInput
            If ``text`` does not parse.  The existing file is not touched.
        StorageError
            If the file cannot be written.
        """
        logger = logging.getLogger(__name__)
        try:
            ConfigDocument.parse(text)
        except InvalidInput as exc:
            logger.warning("Rejected config write: %s", exc)
            raise
        self._persist(text)
        logger.info("Configuration %s replaced (%d characters)", self.path, len(text))

    # ------------------------------------------------------------------
    # Quick settings
    # ------------------------------------------------------------------
    def get_quick_settings(self) -> Dict[str, str]:
        """Return allow-listed settings present in the document.

        Keys that are not in the document are absent from the result.
        An absent document yields an empty mapping.
        """
        text = self._read_document()
        if text is None:
            return {}
        return ConfigDocument.parse(text).get_values(QUICK_SETTINGS_KEYS)

    def set_quick_settings(self, updates: Mapping[str, Optional[str]]) -> Dict[str, str]:
        """Update the ``value`` of allow-listed settings that exist in the document.

        Unknown keys are ignored and keys without a node are skipped.
        Returns the allow-listed updates that were applied to an existing
        node, keyed by canonical name.

        Raises
        ------
        InvalidInput
            If ``updates`` is empty or the current document is not
            well-formed.
        ResourceNotFound
            If there is no document to update.
        """
        logger = logging.getLogger(__name__)
        if not updates:
            raise InvalidInput("No settings provided.")

        allowed: Dict[str, str] = {}
        for key, value in updates.items():
            canonical = canonical_key(key)
            if canonical is None:
                logger.debug("Ignoring unknown setting %s", key)
                continue
            allowed[canonical] = value if value is not None else ""

        text = self._read_document()
        if text is None:
            raise ResourceNotFound("Config file not found.")

        document = ConfigDocument.parse(text)
        applied = {key: value for key, value in allowed.items() if document.find_setting(key) is not None}
        updated = document.with_values(applied)
        self._persist(updated.serialize())
        logger.info("Quick settings updated: %s", ", ".join(sorted(applied)) or "none")
        return applied

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------
    def _read_document(self) -> Optional[str]:
        """Return the document text, or ``None`` if the file does not exist."""
        try:
            # newline="" keeps line endings exactly as stored
            with open(self.path, "r", encoding="utf-8", newline="") as fh:
                return fh.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed to read {self.path}: {exc}") from exc

    def _persist(self, text: str) -> None:
        try:
            staged = self._scratch.new_file(".config")
        except OSError as exc:
            raise StorageError(f"Scratch space unavailable: {exc}") from exc
        try:
            with open(staged.full_name, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            if os.path.exists(self.path):
                shutil.copymode(self.path, staged.full_name)
            try:
                os.replace(staged.full_name, self.path)
            except OSError as exc:
                if exc.errno != errno.EXDEV:
                    raise
                # Scratch space on another filesystem
                shutil.copyfile(staged.full_name, self.path)
        except OSError as exc:
            raise StorageError(f"Failed to write {self.path}: {exc}") from exc
        finally:
            staged.remove()
