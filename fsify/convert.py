from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Callable, List, Optional

from .cleanup import CleanupCoordinator
from .config import ConvertOptions
from .context import ConversionContext, derive_output_paths
from .pipeline import Step, run_pipeline
from .steps import (
    CopyRootfsStep,
    CreateImageStep,
    CreateSquashfsStep,
    EmbedConfigStep,
    FormatFilesystemStep,
    MountImageStep,
    PullImageStep,
    UnmountImageStep,
    UnpackImageStep,
)

logger = logging.getLogger(__name__)


class FinalizeError(RuntimeError):
    pass


@dataclass(frozen=True)
class ConversionResult:
    image_path: str
    squashfs_path: Optional[str] = None
    size_bytes: int = 0
    embedded_config: Optional[str] = None


def build_steps(ctx: ConversionContext, cleanup: CleanupCoordinator) -> List[Step]:
    steps: List[Step] = [
        PullImageStep(),
        UnpackImageStep(),
        EmbedConfigStep(),
        CreateImageStep(),
        FormatFilesystemStep(),
        MountImageStep(critical=cleanup.critical),
        CopyRootfsStep(),
        UnmountImageStep(),
    ]
    if ctx.dual_output:
        steps.append(CreateSquashfsStep())
    return steps


def _move_output(src: str, dst: str) -> str:
    if os.path.isdir(dst):
        raise FinalizeError(f"failed to move {src} to {dst}: destination is a directory")
    try:
        parent = os.path.dirname(os.path.abspath(dst))
        os.makedirs(parent, exist_ok=True)
        # shutil.move falls back to copy+delete when the temp dir is on another filesystem.
        shutil.move(src, dst)
    except OSError as e:
        raise FinalizeError(f"failed to move {src} to {dst}: {e}") from e
    logger.info("Moved %s to %s", src, dst)
    return os.path.abspath(dst)


def finalize_outputs(ctx: ConversionContext) -> ConversionResult:
    image = _move_output(ctx.image_path, ctx.final_path)
    squashfs = None
    if ctx.dual_output and ctx.final_squashfs_path:
        squashfs = _move_output(ctx.squashfs_path, ctx.final_squashfs_path)
    return ConversionResult(
        image_path=image,
        squashfs_path=squashfs,
        size_bytes=ctx.size_plan.total_bytes if ctx.size_plan else 0,
        embedded_config=ctx.embedded_config,
    )


def convert_image(
    image_ref: str,
    options: ConvertOptions,
    *,
    work_root: Optional[str] = None,
    steps_factory: Callable[[ConversionContext, CleanupCoordinator], List[Step]] = build_steps,
) -> ConversionResult:
    """Convert *image_ref* into a filesystem image.

    The working directory is private to this call and always removed;
    mounts and loop devices are released on every exit path.
    """

    # Fail on an unusable reference before anything is created on disk.
    derive_output_paths(image_ref, options.output, options.dual_output)

    work_dir = tempfile.mkdtemp(prefix="fsify-", dir=work_root)
    ctx = ConversionContext.create(image_ref, options, work_dir)
    logger.info("Converting %s (%s) in %s", image_ref, options.fs_type, work_dir)

    with CleanupCoordinator(ctx) as cleanup:
        ctx.make_dirs()
        result = run_pipeline(ctx=ctx, steps=steps_factory(ctx, cleanup))
        logger.debug("Completed steps: %s", ", ".join(result.ran_steps))
        return finalize_outputs(ctx)
