from __future__ import annotations

from ..context import ConversionContext
from ..lib.storage import make_squashfs


class CreateSquashfsStep:
    step_id = "90_create_squashfs"
    label = "Creating squashfs image"

    def run(self, ctx: ConversionContext) -> None:
        make_squashfs(ctx.rootfs_path, ctx.squashfs_path)
