from __future__ import annotations

import logging
from typing import Dict, List

from .command import CommandError, run_cmd

logger = logging.getLogger(__name__)


# Force flags so mkfs overwrites whatever signature the file already carries.
MKFS_FORCE_FLAGS: Dict[str, List[str]] = {
    "ext2": ["-F"],
    "ext3": ["-F"],
    "ext4": ["-F"],
    "xfs": ["-f"],
    "btrfs": ["-f"],
}

MKFS_HINTS: Dict[str, str] = {
    "ext2": "Make sure e2fsprogs is installed",
    "ext3": "Make sure e2fsprogs is installed",
    "ext4": "Make sure e2fsprogs is installed",
    "xfs": "Make sure xfsprogs is installed",
    "btrfs": "Make sure btrfs-progs is installed",
}


class FormatError(RuntimeError):
    def __init__(self, fs_type: str, cause: CommandError, hint: str | None) -> None:
        self.fs_type = fs_type
        self.hint = hint
        msg = f"mkfs.{fs_type} failed: {cause}"
        if hint:
            msg += f"\nHint: {hint}"
        super().__init__(msg)


def mkfs_argv(fs_type: str, image_path: str) -> list[str]:
    return [f"mkfs.{fs_type}", *MKFS_FORCE_FLAGS.get(fs_type, []), image_path]


def allocate_image(path: str, size_bytes: int, *, preallocate: bool) -> None:
    """Create the backing file at its final apparent size.

    Preallocation reserves the blocks up front and fails immediately when the
    disk is too small; sparse files only consume what is later written.
    """

    if size_bytes <= 0 or size_bytes % 1024:
        raise ValueError(f"image size must be a positive multiple of 1KiB, got {size_bytes}")

    if preallocate:
        run_cmd(["fallocate", "-l", str(size_bytes), path])
    else:
        run_cmd(
            [
                "dd",
                "if=/dev/zero",
                f"of={path}",
                "bs=1K",
                "count=0",
                f"seek={size_bytes // 1024}",
            ]
        )
    logger.info("Allocated %s (%d bytes, %s)", path, size_bytes, "preallocated" if preallocate else "sparse")


def format_image(path: str, fs_type: str) -> None:
    try:
        run_cmd(mkfs_argv(fs_type, path))
    except CommandError as e:
        hint = MKFS_HINTS.get(fs_type)
        if hint:
            logger.warning("Hint: %s", hint)
        raise FormatError(fs_type, e, hint) from e


def make_squashfs(source_dir: str, out_path: str) -> None:
    run_cmd(["mksquashfs", source_dir, out_path, "-noappend"])
