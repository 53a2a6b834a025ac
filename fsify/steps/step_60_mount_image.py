from __future__ import annotations

import contextlib
import logging
import os
from typing import Callable, ContextManager

from ..context import ConversionContext
from ..lib.loop import attach_loop, mount_device

logger = logging.getLogger(__name__)


class MountImageStep:
    step_id = "60_mount_image"
    label = "Mounting image"

    def __init__(self, critical: Callable[[], ContextManager[None]] = contextlib.nullcontext) -> None:
        # Holds off interrupts between losetup returning and the device being recorded.
        self.critical = critical

    def run(self, ctx: ConversionContext) -> None:
        if ctx.loop_device:
            raise RuntimeError(f"Loop device already attached: {ctx.loop_device}")
        if os.listdir(ctx.mount_point):
            raise RuntimeError(f"Mount point is not empty: {ctx.mount_point}")

        with self.critical():
            ctx.loop_device = attach_loop(ctx.image_path)

        mount_device(ctx.loop_device, ctx.mount_point)
        ctx.mounted = True
        logger.info("Mounted %s at %s", ctx.loop_device, ctx.mount_point)
