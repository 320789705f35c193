from __future__ import annotations

import os
from pathlib import Path

from ipban_webui.app.core.scratch import SCRATCH_DIRECTORY_NAME, ScratchSpace, TempFile


def test_setup_clears_leftovers_and_teardown_removes(tmp_path):
    base = tmp_path / "scratch"
    space = ScratchSpace(str(base))
    owned = Path(space.directory)
    owned.mkdir(parents=True)
    (owned / "stale.tmp").write_text("old")

    space.setup()
    assert space.is_open
    assert os.listdir(owned) == []

    space.teardown()
    assert not owned.exists()
    assert not space.is_open


def test_shared_base_directory_is_left_alone(tmp_path):
    (tmp_path / "unrelated.txt").write_text("keep")
    (tmp_path / "other").mkdir()

    space = ScratchSpace(str(tmp_path))
    assert space.directory == str(tmp_path.resolve() / SCRATCH_DIRECTORY_NAME)
    space.setup()
    space.new_file()
    space.teardown()

    assert (tmp_path / "unrelated.txt").read_text() == "keep"
    assert (tmp_path / "other").is_dir()
    assert sorted(os.listdir(tmp_path)) == ["other", "unrelated.txt"]


def test_new_file_names_are_unique_and_explicit(tmp_path):
    space = ScratchSpace(str(tmp_path / "scratch"))
    first = space.new_file()
    second = space.new_file(".config")
    assert isinstance(first, TempFile)
    assert first.full_name != second.full_name
    assert second.full_name.endswith(".config")
    assert os.path.dirname(first.full_name) == space.directory
    # the directory is created on demand, the file is not
    assert os.path.isdir(space.directory)
    assert not os.path.exists(first.full_name)


def test_temp_file_remove_is_safe_when_missing(tmp_path):
    temp = TempFile(str(tmp_path / "missing.tmp"))
    temp.remove()
    (tmp_path / "missing.tmp").write_text("x")
    temp.remove()
    assert not (tmp_path / "missing.tmp").exists()
