from __future__ import annotations

import logging

from ..context import ConversionContext
from ..lib.copy import copy_tree, tree_size
from ..lib.progress import CopyProgress

logger = logging.getLogger(__name__)


class CopyRootfsStep:
    step_id = "70_copy_rootfs"
    label = "Copying files to image"

    def run(self, ctx: ConversionContext) -> None:
        if not ctx.mounted:
            raise RuntimeError(f"{ctx.mount_point} is not mounted; run the mount step first")

        total = tree_size(ctx.rootfs_path)
        logger.info("Copying %d bytes from %s", total, ctx.rootfs_path)
        copy_tree(ctx.rootfs_path, ctx.mount_point, progress=CopyProgress(total, label=self.label))
