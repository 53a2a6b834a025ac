from __future__ import annotations

import logging
from dataclasses import dataclass

from .command import run_cmd

logger = logging.getLogger(__name__)


DEFAULT_BUFFER_MIB = 50
LARGE_IMAGE_BUFFER_MIB = 100
LARGE_IMAGE_THRESHOLD_KIB = 1024 * 1024  # 1 GiB


@dataclass(frozen=True)
class SizePlan:
    source_kib: int
    buffer_kib: int
    escalated: bool = False

    @property
    def total_kib(self) -> int:
        return self.source_kib + self.buffer_kib

    @property
    def total_bytes(self) -> int:
        return self.total_kib * 1024


def measure_tree_kib(path: str) -> int:
    """Return the disk usage of *path* in KiB, as reported by ``du -sk``."""

    r = run_cmd(["du", "-sk", path])
    parts = (r.stdout or "").split()
    if not parts:
        raise RuntimeError(f"Unable to parse du output for {path}: {r.stdout!r}")
    try:
        return int(parts[0])
    except ValueError as e:
        raise RuntimeError(f"Unable to parse du size {parts[0]!r} for {path}") from e


def plan_image_size(
    source_kib: int,
    *,
    buffer_mib: int = DEFAULT_BUFFER_MIB,
    buffer_explicit: bool = False,
) -> SizePlan:
    """Size the backing file as rootfs plus headroom.

    Large trees carry more filesystem metadata, so trees over 1 GiB get the
    larger buffer unless the caller chose one.
    """

    if source_kib < 0:
        raise ValueError(f"source size must be non-negative, got {source_kib}")
    if buffer_mib < 0:
        raise ValueError(f"buffer size must be non-negative, got {buffer_mib}")

    if not buffer_explicit and source_kib > LARGE_IMAGE_THRESHOLD_KIB:
        logger.info(
            "Image size >1GiB detected, increasing buffer to %dMiB", LARGE_IMAGE_BUFFER_MIB
        )
        return SizePlan(source_kib=source_kib, buffer_kib=LARGE_IMAGE_BUFFER_MIB * 1024, escalated=True)

    return SizePlan(source_kib=source_kib, buffer_kib=buffer_mib * 1024)
