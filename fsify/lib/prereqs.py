from __future__ import annotations

import shutil
from typing import Callable, List, Optional

BASE_TOOLS = ["skopeo", "umoci", "mount", "umount", "losetup", "dd", "du"]

INSTALL_SUGGESTIONS = """\
Please install the required tools. For example:
  Debian/Ubuntu:      sudo apt-get update && sudo apt-get install skopeo umoci coreutils util-linux e2fsprogs
  Fedora/CentOS/RHEL: sudo dnf install skopeo umoci coreutils util-linux e2fsprogs

For additional filesystems:
  For XFS/Btrfs:      sudo apt-get install xfsprogs btrfs-progs
  For --dual-output:  sudo apt-get install squashfs-tools"""


class MissingPrerequisitesError(RuntimeError):
    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"missing required tools: {', '.join(self.missing)}")


def required_tools(fs_type: str, *, preallocate: bool = False, dual_output: bool = False) -> List[str]:
    tools = [*BASE_TOOLS, f"mkfs.{fs_type}"]
    if preallocate:
        tools.append("fallocate")
    if dual_output:
        tools.append("mksquashfs")
    return tools


def check_prerequisites(
    fs_type: str,
    *,
    preallocate: bool = False,
    dual_output: bool = False,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> None:
    """Raise MissingPrerequisitesError listing every tool not on PATH."""

    missing = [t for t in required_tools(fs_type, preallocate=preallocate, dual_output=dual_output) if which(t) is None]
    if missing:
        raise MissingPrerequisitesError(missing)
