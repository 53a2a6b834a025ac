from __future__ import annotations

import logging

from ..context import ConversionContext
from ..lib.loop import detach_loop, unmount

logger = logging.getLogger(__name__)


class UnmountImageStep:
    step_id = "80_unmount_image"
    label = "Unmounting image"

    def run(self, ctx: ConversionContext) -> None:
        unmount(ctx.mount_point)
        ctx.mounted = False
        if ctx.loop_device:
            detach_loop(ctx.loop_device)
            ctx.loop_device = ""
