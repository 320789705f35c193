"""
Scratch directory used to stage file writes.

A ``ScratchSpace`` is created once when the application starts and is
torn down explicitly from the shutdown hook (see ``main.create_app``).
It is stored on ``app.state`` and handed to the services that need it;
there is no module-level temp state.

The space lives in its own ``ipban_webui_TempFiles`` subdirectory of the
configured base directory.  Only that subdirectory is ever cleared or
removed, so the base may be a shared location such as ``/tmp``.

``TempFile`` is a plain value naming one file inside the scratch
space.  Use ``full_name`` to get its path.
"""

import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

SCRATCH_DIRECTORY_NAME = "ipban_webui_TempFiles"


@dataclass(frozen=True)
class TempFile:
    """A file name inside a scratch space.  The file itself is not created."""

    full_name: str

    def remove(self) -> None:
        """Delete the file if it exists."""
        try:
            os.unlink(self.full_name)
        except FileNotFoundError:
            pass


class ScratchSpace:
    """Owns a directory of temporary files for the lifetime of the process."""

    def __init__(self, base_directory: str) -> None:
        self.base_directory = str(Path(base_directory).resolve())
        self.directory = os.path.join(self.base_directory, SCRATCH_DIRECTORY_NAME)
        self._open = False

    def setup(self) -> None:
        """Create the directory, clearing leftovers from a previous run."""
        self._remove_directory()
        os.makedirs(self.directory, exist_ok=True)
        self._open = True
        logger.debug("Scratch space ready at %s", self.directory)

    def teardown(self) -> None:
        """Delete the directory and everything in it."""
        self._remove_directory()
        self._open = False
        logger.debug("Scratch space %s removed", self.directory)

    @property
    def is_open(self) -> bool:
        return self._open

    def new_file(self, suffix: str = ".tmp") -> TempFile:
        """Return a fresh, unused file name inside the scratch directory."""
        if not self._open:
            os.makedirs(self.directory, exist_ok=True)
            self._open = True
        return TempFile(os.path.join(self.directory, uuid.uuid4().hex + suffix))

    def _remove_directory(self) -> None:
        if os.path.isdir(self.directory):
            try:
                shutil.rmtree(self.directory)
            except OSError as exc:
                logger.warning("Could not remove scratch directory %s: %s", self.directory, exc)
