from __future__ import annotations

import contextlib
import logging
import os
import shutil
import signal
import sys
import threading
from types import FrameType
from typing import Any, Callable, Dict, Iterator, Optional, Sequence

from .context import ConversionContext
from .lib.command import CommandError
from .lib.loop import UnmountError, detach_loop, unmount

logger = logging.getLogger(__name__)


DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CleanupCoordinator:
    """Releases a run's mount, loop device and working directory.

    ``teardown()`` is idempotent and is reached from two places: the
    ``with`` block exit (normal return or exception) and the SIGINT/SIGTERM
    handler, which tears down and then exits with ``128 + signum``.
    Signals arriving inside ``critical()`` are held until the block ends.
    """

    def __init__(
        self,
        ctx: ConversionContext,
        *,
        signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
        exit_func: Callable[[int], Any] = sys.exit,
    ) -> None:
        self.ctx = ctx
        self.signals = tuple(signals)
        self._exit = exit_func
        self._previous: Dict[signal.Signals, Any] = {}
        self._critical_depth = 0
        self._pending: Optional[int] = None
        self._tearing_down = False
        self._done = False

    def __enter__(self) -> "CleanupCoordinator":
        self.install()
        return self

    def __exit__(self, *exc: object) -> bool:
        try:
            self.teardown()
        finally:
            self.restore()
        return False

    def install(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread; signal cleanup not installed")
            return
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self.handle_signal)

    def restore(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()

    @contextlib.contextmanager
    def critical(self) -> Iterator[None]:
        self._critical_depth += 1
        try:
            yield
        finally:
            self._critical_depth -= 1
            if self._critical_depth == 0 and self._pending is not None:
                signum, self._pending = self._pending, None
                self.handle_signal(signum, None)

    def handle_signal(self, signum: int, frame: Optional[FrameType]) -> None:
        if self._critical_depth:
            self._pending = signum
            return
        if self._tearing_down:
            logger.warning("Signal %d received during cleanup; finishing cleanup first", signum)
            return
        logger.warning("Interrupt received (signal %d), cleaning up...", signum)
        self.teardown()
        self._exit(128 + signum)

    def teardown(self) -> bool:
        """Unmount, detach and remove the working directory.

        Returns True once everything has been released. Never raises.
        """

        if self._done:
            return True
        if self._tearing_down:
            return False

        self._tearing_down = True
        try:
            unmounted = self._release_mount()
            detached = self._release_loop()
            if unmounted:
                self._remove_work_dir()
            else:
                logger.error(
                    "Leaving %s in place because %s is still mounted",
                    self.ctx.work_dir,
                    self.ctx.mount_point,
                )
            self._done = unmounted and detached
        finally:
            self._tearing_down = False
        return self._done

    def _release_mount(self) -> bool:
        # An interrupt can land after mount(8) succeeded but before ctx.mounted was set.
        if not (self.ctx.mounted or os.path.ismount(self.ctx.mount_point)):
            return True
        try:
            unmount(self.ctx.mount_point)
        except (UnmountError, CommandError) as e:
            logger.warning("Failed to unmount %s: %s", self.ctx.mount_point, e)
            return False
        self.ctx.mounted = False
        return True

    def _release_loop(self) -> bool:
        if not self.ctx.loop_device:
            return True
        try:
            detach_loop(self.ctx.loop_device)
        except CommandError as e:
            logger.warning("Failed to detach loop device %s: %s", self.ctx.loop_device, e)
            return False
        self.ctx.loop_device = ""
        return True

    def _remove_work_dir(self) -> None:
        if not os.path.exists(self.ctx.work_dir):
            return
        try:
            shutil.rmtree(self.ctx.work_dir)
        except OSError as e:
            logger.warning("Failed to remove working directory %s: %s", self.ctx.work_dir, e)
            return
        logger.debug("Removed working directory %s", self.ctx.work_dir)
