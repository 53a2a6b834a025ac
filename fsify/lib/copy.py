from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .progress import CopyProgress

logger = logging.getLogger(__name__)


COPY_CHUNK_SIZE = 1024 * 1024


class CopyError(RuntimeError):
    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        super().__init__(f"Failed to copy {path}: {cause}")


@dataclass
class CopyStats:
    files: int = 0
    dirs: int = 0
    symlinks: int = 0
    special: int = 0
    bytes: int = 0


def _raise(err: OSError) -> None:
    raise CopyError(err.filename or "?", err)


def tree_size(root: str) -> int:
    """Sum the sizes of regular files under *root* (links and dirs excluded)."""

    total = 0
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
        for name in filenames:
            p = os.path.join(dirpath, name)
            try:
                st = os.lstat(p)
            except OSError as e:
                raise CopyError(p, e) from e
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
    return total


def _copy_file(src: str, dst: str, mode: int, progress: Optional[CopyProgress]) -> int:
    written = 0
    fd = os.open(dst, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with open(src, "rb") as fin, os.fdopen(fd, "wb") as fout:
        while True:
            chunk = fin.read(COPY_CHUNK_SIZE)
            if not chunk:
                break
            fout.write(chunk)
            written += len(chunk)
            if progress is not None:
                progress.advance(len(chunk))
    # os.open honours the umask; set the exact bits (setuid, sticky included).
    os.chmod(dst, mode)
    return written


def _copy_entry(src: str, dst: str, progress: Optional[CopyProgress], stats: CopyStats) -> Optional[int]:
    """Copy one non-directory entry; returns the mode for directories."""

    st = os.lstat(src)
    mode = stat.S_IMODE(st.st_mode)

    if stat.S_ISLNK(st.st_mode):
        os.symlink(os.readlink(src), dst)
        stats.symlinks += 1
    elif stat.S_ISDIR(st.st_mode):
        os.makedirs(dst, mode=0o755, exist_ok=True)
        stats.dirs += 1
        return mode
    elif stat.S_ISREG(st.st_mode):
        stats.bytes += _copy_file(src, dst, mode, progress)
        stats.files += 1
    elif stat.S_ISFIFO(st.st_mode):
        os.mkfifo(dst, mode)
        stats.special += 1
    elif stat.S_ISCHR(st.st_mode) or stat.S_ISBLK(st.st_mode):
        os.mknod(dst, st.st_mode, st.st_rdev)
        stats.special += 1
    else:
        logger.warning("Skipping unsupported file type: %s", src)
    return None


def copy_tree(src: str, dst: str, *, progress: Optional[CopyProgress] = None) -> CopyStats:
    """Replicate *src* under *dst*.

    Directories are created before their children; symlinks are recreated
    from their link text and never followed. Directory modes are applied
    last, deepest first, so read-only directories can still be filled.
    Any OSError aborts the copy as a CopyError naming the path.
    """

    if not os.path.isdir(src):
        raise CopyError(src, FileNotFoundError(2, "source tree not found", src))

    stats = CopyStats()
    dir_modes: List[Tuple[str, int]] = []

    try:
        os.makedirs(dst, exist_ok=True)
    except OSError as e:
        raise CopyError(dst, e) from e

    for dirpath, dirnames, filenames in os.walk(src, onerror=_raise):
        rel = os.path.relpath(dirpath, src)
        out_dir = dst if rel == os.curdir else os.path.join(dst, rel)
        for name in sorted(dirnames) + sorted(filenames):
            s = os.path.join(dirpath, name)
            d = os.path.join(out_dir, name)
            try:
                mode = _copy_entry(s, d, progress, stats)
            except OSError as e:
                raise CopyError(s, e) from e
            if mode is not None:
                dir_modes.append((d, mode))

    for d, mode in reversed(dir_modes):
        try:
            os.chmod(d, mode)
        except OSError as e:
            raise CopyError(d, e) from e

    try:
        os.chmod(dst, stat.S_IMODE(os.lstat(src).st_mode))
    except OSError as e:
        raise CopyError(dst, e) from e

    if progress is not None:
        progress.finish()

    logger.info(
        "Copied %d files, %d dirs, %d symlinks (%d bytes)",
        stats.files,
        stats.dirs,
        stats.symlinks,
        stats.bytes,
    )
    return stats
