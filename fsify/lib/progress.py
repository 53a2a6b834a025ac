from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CopyProgress:
    """Byte counter for the copy step, reported as log lines.

    A failing ``on_update`` callback is disabled after logging it once; it
    never interrupts the copy.
    """

    def __init__(
        self,
        total: int,
        *,
        label: str = "Copying files to image",
        step_percent: int = 10,
        on_update: Optional[Callable[[int, int], None]] = None,
    ) -> None:
        self.total = total
        self.done = 0
        self.label = label
        self.step_percent = step_percent
        self.on_update = on_update
        self._next_report = step_percent

    def advance(self, n: int) -> None:
        if n <= 0:
            return
        self.done += n
        if self.on_update is not None:
            try:
                self.on_update(self.done, self.total)
            except Exception:
                logger.warning("Progress callback failed; disabling it", exc_info=True)
                self.on_update = None
        if self.total <= 0:
            return
        pct = self.done * 100 // self.total
        if pct >= self._next_report:
            logger.info("%s: %d%% (%d / %d bytes)", self.label, pct, self.done, self.total)
            while self._next_report <= pct:
                self._next_report += self.step_percent

    def finish(self) -> None:
        logger.info("%s: done (%d bytes)", self.label, self.done)
