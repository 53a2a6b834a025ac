from __future__ import annotations

from ..context import ConversionContext
from ..lib.oci import embed_config


class EmbedConfigStep:
    """Best effort: a missing or broken config never fails the run."""

    step_id = "30_embed_config"
    label = "Extracting OCI config"

    def run(self, ctx: ConversionContext) -> None:
        written = embed_config(ctx.oci_layout_path, ctx.rootfs_path)
        ctx.embedded_config = str(written) if written is not None else None
