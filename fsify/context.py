from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import ConvertOptions
from .lib.sizing import SizePlan

# Fixed layout of a run's working directory.
OCI_LAYOUT_DIR = "oci-layout"
UNPACKED_DIR = "unpacked-rootfs"
MOUNT_DIR = "mnt"
IMAGE_FILE = "fs-image.img"
SQUASHFS_FILE = "fs-image.squashfs"


def derive_output_paths(image_ref: str, output: Optional[str], dual_output: bool) -> Tuple[str, Optional[str]]:
    """Return (primary, companion) output paths for *image_ref*.

    ``registry/library/nginx:latest`` -> ``nginx-latest.img``; an explicit
    *output* keeps its name and the companion swaps its extension.
    """

    if output:
        companion = os.path.splitext(output)[0] + ".squashfs" if dual_output else None
        if companion is not None and os.path.abspath(companion) == os.path.abspath(output):
            raise ValueError(f"Output {output!r} would be overwritten by its squashfs companion")
        return output, companion

    name = image_ref.rstrip("/").split("/")[-1].replace(":", "-")
    if not name:
        raise ValueError(f"Cannot derive an output name from image reference {image_ref!r}")
    return name + ".img", (name + ".squashfs") if dual_output else None


@dataclass
class ConversionContext:
    """Mutable state for one conversion run.

    ``loop_device`` is non-empty exactly while a device is attached, and
    ``mounted`` is true exactly while the mount step's mount is in place.
    """

    image_ref: str
    work_dir: str
    options: ConvertOptions
    final_path: str
    final_squashfs_path: Optional[str] = None
    loop_device: str = ""
    mounted: bool = False
    size_plan: Optional[SizePlan] = None
    embedded_config: Optional[str] = None

    @classmethod
    def create(cls, image_ref: str, options: ConvertOptions, work_dir: str) -> "ConversionContext":
        final_path, final_squashfs = derive_output_paths(image_ref, options.output, options.dual_output)
        return cls(
            image_ref=image_ref,
            work_dir=work_dir,
            options=options,
            final_path=final_path,
            final_squashfs_path=final_squashfs,
        )

    @property
    def oci_layout_path(self) -> str:
        return os.path.join(self.work_dir, OCI_LAYOUT_DIR)

    @property
    def unpacked_path(self) -> str:
        return os.path.join(self.work_dir, UNPACKED_DIR)

    @property
    def rootfs_path(self) -> str:
        return os.path.join(self.unpacked_path, "rootfs")

    @property
    def image_path(self) -> str:
        return os.path.join(self.work_dir, IMAGE_FILE)

    @property
    def squashfs_path(self) -> str:
        return os.path.join(self.work_dir, SQUASHFS_FILE)

    @property
    def mount_point(self) -> str:
        return os.path.join(self.work_dir, MOUNT_DIR)

    @property
    def fs_type(self) -> str:
        return self.options.fs_type

    @property
    def dual_output(self) -> bool:
        return self.options.dual_output

    def make_dirs(self) -> None:
        for d in (self.oci_layout_path, self.unpacked_path, self.mount_point):
            os.mkdir(d, 0o755)
