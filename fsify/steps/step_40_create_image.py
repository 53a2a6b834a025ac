from __future__ import annotations

import logging

from ..context import ConversionContext
from ..lib.sizing import measure_tree_kib, plan_image_size
from ..lib.storage import allocate_image

logger = logging.getLogger(__name__)


class CreateImageStep:
    step_id = "40_create_image"
    label = "Calculating disk size"

    def run(self, ctx: ConversionContext) -> None:
        opts = ctx.options
        source_kib = measure_tree_kib(ctx.rootfs_path)
        plan = plan_image_size(
            source_kib,
            buffer_mib=opts.buffer_mib,
            buffer_explicit=opts.buffer_explicit,
        )
        logger.info(
            "Rootfs: %d KiB, Buffer: %d KiB, Total: %d KiB",
            plan.source_kib,
            plan.buffer_kib,
            plan.total_kib,
        )
        allocate_image(ctx.image_path, plan.total_bytes, preallocate=opts.preallocate)
        ctx.size_plan = plan
