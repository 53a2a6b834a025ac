from __future__ import annotations

from ..context import ConversionContext
from ..lib.oci import pull_image


class PullImageStep:
    step_id = "10_pull_image"
    label = "Downloading OCI image"

    def run(self, ctx: ConversionContext) -> None:
        pull_image(ctx.image_ref, ctx.oci_layout_path)
