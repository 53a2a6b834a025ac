"""Unit tests for backing file allocation and formatting."""

from __future__ import annotations

import pytest

from fsify.lib.storage import FormatError, allocate_image, format_image, make_squashfs, mkfs_argv


def test_sparse_allocation_uses_dd_seek(fake_run) -> None:
    allocate_image("/w/fs-image.img", 60 * 1024 * 1024, preallocate=False)
    assert fake_run.calls == [
        ["dd", "if=/dev/zero", "of=/w/fs-image.img", "bs=1K", "count=0", "seek=61440"]
    ]


def test_preallocation_uses_fallocate(fake_run) -> None:
    allocate_image("/w/fs-image.img", 60 * 1024 * 1024, preallocate=True)
    assert fake_run.calls == [["fallocate", "-l", str(60 * 1024 * 1024), "/w/fs-image.img"]]


def test_preallocation_failure_propagates(fake_run, cmd_failure) -> None:
    fake_run.on("fallocate", cmd_failure("fallocate: No space left on device"))
    with pytest.raises(RuntimeError, match="No space left"):
        allocate_image("/w/fs-image.img", 1024, preallocate=True)


def test_allocation_rejects_unaligned_size(fake_run) -> None:
    with pytest.raises(ValueError):
        allocate_image("/w/fs-image.img", 1000, preallocate=False)
    assert fake_run.calls == []


@pytest.mark.parametrize(
    "fs_type, expected",
    [
        ("ext4", ["mkfs.ext4", "-F", "/img"]),
        ("ext3", ["mkfs.ext3", "-F", "/img"]),
        ("xfs", ["mkfs.xfs", "-f", "/img"]),
        ("btrfs", ["mkfs.btrfs", "-f", "/img"]),
        ("vfat", ["mkfs.vfat", "/img"]),
    ],
)
def test_mkfs_force_flags(fs_type: str, expected: list[str]) -> None:
    assert mkfs_argv(fs_type, "/img") == expected


def test_format_failure_carries_hint(fake_run, cmd_failure) -> None:
    fake_run.on("mkfs.xfs", cmd_failure("mkfs.xfs: command not found", 127))
    with pytest.raises(FormatError) as exc:
        format_image("/img", "xfs")
    assert exc.value.hint == "Make sure xfsprogs is installed"
    assert "command not found" in str(exc.value)


def test_format_failure_for_unknown_fs_has_no_hint(fake_run, cmd_failure) -> None:
    fake_run.on("mkfs.nope", cmd_failure("not found", 127))
    with pytest.raises(FormatError) as exc:
        format_image("/img", "nope")
    assert exc.value.hint is None


def test_squashfs_command(fake_run) -> None:
    make_squashfs("/w/rootfs", "/w/fs-image.squashfs")
    assert fake_run.calls == [["mksquashfs", "/w/rootfs", "/w/fs-image.squashfs", "-noappend"]]
