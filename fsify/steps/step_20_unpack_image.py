from __future__ import annotations

import logging
import os

from ..context import ConversionContext
from ..lib.oci import unpack_image

logger = logging.getLogger(__name__)


class UnpackImageStep:
    step_id = "20_unpack_image"
    label = "Unpacking image layers"

    def run(self, ctx: ConversionContext) -> None:
        unpack_image(ctx.oci_layout_path, ctx.unpacked_path)
        if not os.path.isdir(ctx.rootfs_path):
            raise RuntimeError(f"Unpacked image has no rootfs directory: {ctx.rootfs_path}")
        logger.info("Unpacked rootfs at %s", ctx.rootfs_path)
