"""Unit tests for rootfs tree copying."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from fsify.lib.copy import CopyError, copy_tree, tree_size
from fsify.lib.progress import CopyProgress


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    src = tmp_path / "rootfs"
    (src / "usr" / "bin").mkdir(parents=True)
    (src / "etc").mkdir()
    (src / "etc" / "hostname").write_text("box\n")
    tool = src / "usr" / "bin" / "tool"
    tool.write_bytes(b"\x7fELF" + bytes(range(256)) * 40)
    tool.chmod(0o755)
    secret = src / "etc" / "shadow"
    secret.write_text("root:*:19000::::::\n")
    secret.chmod(0o640)
    (src / "bin").symlink_to("usr/bin")
    (src / "etc" / "missing-link").symlink_to("/does/not/exist")
    return src


def test_tree_size_counts_regular_files_only(source_tree: Path) -> None:
    expected = 4 + 256 * 40 + len("box\n") + len("root:*:19000::::::\n")
    assert tree_size(str(source_tree)) == expected


def test_copy_preserves_content_modes_and_links(source_tree: Path, tmp_path: Path) -> None:
    dst = tmp_path / "mnt"
    dst.mkdir()
    stats = copy_tree(str(source_tree), str(dst))

    tool = dst / "usr" / "bin" / "tool"
    assert tool.read_bytes() == (source_tree / "usr" / "bin" / "tool").read_bytes()
    assert stat.S_IMODE(tool.stat().st_mode) == 0o755
    assert stat.S_IMODE((dst / "etc" / "shadow").stat().st_mode) == 0o640

    assert (dst / "bin").is_symlink()
    assert os.readlink(dst / "bin") == "usr/bin"
    assert os.readlink(dst / "etc" / "missing-link") == "/does/not/exist"

    assert stats.files == 3
    assert stats.symlinks == 2
    assert stats.dirs == 3


def test_progress_counts_every_byte_once(source_tree: Path, tmp_path: Path) -> None:
    total = tree_size(str(source_tree))
    updates: list[int] = []
    progress = CopyProgress(total, on_update=lambda done, _total: updates.append(done))
    stats = copy_tree(str(source_tree), str(tmp_path / "mnt"), progress=progress)
    assert progress.done == total == stats.bytes
    assert updates == sorted(updates)


def test_failing_progress_callback_does_not_break_copy(source_tree: Path, tmp_path: Path) -> None:
    def broken(done: int, total: int) -> None:
        raise ValueError("terminal went away")

    progress = CopyProgress(tree_size(str(source_tree)), on_update=broken)
    copy_tree(str(source_tree), str(tmp_path / "mnt"), progress=progress)
    assert (tmp_path / "mnt" / "etc" / "hostname").read_text() == "box\n"
    assert progress.on_update is None


def test_read_only_directory_is_populated(tmp_path: Path) -> None:
    src = tmp_path / "src"
    locked = src / "locked"
    locked.mkdir(parents=True)
    (locked / "file").write_text("x")
    locked.chmod(0o555)
    try:
        copy_tree(str(src), str(tmp_path / "dst"))
    finally:
        locked.chmod(0o755)
    out = tmp_path / "dst" / "locked"
    assert (out / "file").read_text() == "x"
    assert stat.S_IMODE(out.stat().st_mode) == 0o555
    out.chmod(0o755)


def test_existing_destination_file_is_truncated(source_tree: Path, tmp_path: Path) -> None:
    dst = tmp_path / "mnt"
    (dst / "etc").mkdir(parents=True)
    (dst / "etc" / "hostname").write_text("a much longer previous hostname\n")
    copy_tree(str(source_tree), str(dst))
    assert (dst / "etc" / "hostname").read_text() == "box\n"


def test_io_error_names_offending_path(source_tree: Path, tmp_path: Path) -> None:
    dst = tmp_path / "mnt"
    dst.mkdir()
    # A pre-existing entry where the symlink must go makes os.symlink fail.
    (dst / "bin").mkdir()
    with pytest.raises(CopyError) as exc:
        copy_tree(str(source_tree), str(dst))
    assert exc.value.path == str(source_tree / "bin")


def test_missing_source_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(CopyError):
        copy_tree(str(tmp_path / "nope"), str(tmp_path / "dst"))


def test_fifo_is_recreated(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    os.mkfifo(src / "pipe", 0o600)
    stats = copy_tree(str(src), str(tmp_path / "dst"))
    assert stat.S_ISFIFO(os.lstat(tmp_path / "dst" / "pipe").st_mode)
    assert stats.special == 1


def test_root_directory_mode_is_applied(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "file").write_text("x")
    src.chmod(0o750)
    dst = tmp_path / "mnt"
    dst.mkdir(mode=0o700)
    copy_tree(str(src), str(dst))
    assert stat.S_IMODE(dst.stat().st_mode) == 0o750
