from __future__ import annotations

from ..context import ConversionContext
from ..lib.storage import format_image


class FormatFilesystemStep:
    step_id = "50_format_fs"
    label = "Creating filesystem"

    def run(self, ctx: ConversionContext) -> None:
        format_image(ctx.image_path, ctx.fs_type)
