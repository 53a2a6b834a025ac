from __future__ import annotations

import logging
import os
import time
from typing import Callable

from .command import CommandError, run_cmd

logger = logging.getLogger(__name__)


UMOUNT_ATTEMPTS = 5
UMOUNT_RETRY_DELAY_S = 0.2

# umount/losetup messages meaning the resource is already released.
_NOT_MOUNTED_MARKERS = ("not mounted", "not found")
_NOT_ATTACHED_MARKERS = ("No such device",)


class UnmountError(RuntimeError):
    pass


def attach_loop(image_path: str) -> str:
    """Bind *image_path* to a free loop device and return the device path."""

    r = run_cmd(["losetup", "--find", "--show", image_path])
    device = (r.stdout or "").strip()
    if not device:
        raise RuntimeError(f"losetup did not return a device path for {image_path}")
    logger.info("Attached %s to loop device %s", image_path, device)
    return device


def mount_device(device: str, target: str) -> None:
    run_cmd(["mount", device, target])


def unmount(
    target: str,
    *,
    attempts: int = UMOUNT_ATTEMPTS,
    delay_s: float = UMOUNT_RETRY_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Unmount *target*, retrying while it is busy.

    A target that is not mounted (or no longer exists) counts as success.
    """

    if not os.path.exists(target):
        logger.debug("Mount point %s does not exist; nothing to unmount", target)
        return

    last: CommandError | None = None
    for attempt in range(1, attempts + 1):
        try:
            run_cmd(["umount", target])
            return
        except CommandError as e:
            if any(m in e.output for m in _NOT_MOUNTED_MARKERS):
                logger.debug("%s already unmounted", target)
                return
            last = e
            logger.debug("umount %s failed (attempt %d/%d)", target, attempt, attempts)
            if attempt < attempts:
                sleep(delay_s)

    raise UnmountError(f"Failed to unmount {target} after {attempts} attempts: {last}")


def detach_loop(device: str) -> None:
    """Release *device*; an already-detached device counts as success."""

    try:
        run_cmd(["losetup", "-d", device])
    except CommandError as e:
        if any(m in e.output for m in _NOT_ATTACHED_MARKERS):
            logger.debug("%s already detached", device)
            return
        raise
    logger.info("Detached loop device %s", device)
