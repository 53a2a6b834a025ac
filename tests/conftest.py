"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from fsify.lib import loop, oci, sizing, storage
from fsify.lib.command import CmdResult, CommandError

Handler = Callable[[List[str]], Optional[str]]


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Attach suite markers based on test file path."""
    del config
    for item in items:
        if "unit_tests" in Path(str(item.fspath)).parts:
            item.add_marker(pytest.mark.unit)


class FakeRunner:
    """Stands in for ``run_cmd``; dispatches on the program name."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.handlers: Dict[str, Handler] = {}

    def on(self, program: str, handler: Handler) -> None:
        self.handlers[program] = handler

    def __call__(self, argv: Sequence[str], *, check: bool = True, **kwargs: Any) -> CmdResult:
        argv_list = list(argv)
        self.calls.append(argv_list)
        handler = self.handlers.get(argv_list[0])
        stdout = handler(argv_list) if handler else ""
        return CmdResult(argv=argv_list, returncode=0, stdout=stdout or "", stderr="")

    @property
    def programs(self) -> List[str]:
        return [c[0] for c in self.calls]

    def calls_to(self, program: str) -> List[List[str]]:
        return [c for c in self.calls if c[0] == program]


def failing(stderr: str, returncode: int = 1) -> Handler:
    def handler(argv: List[str]) -> Optional[str]:
        raise CommandError(argv, returncode, stderr=stderr)

    return handler


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    runner = FakeRunner()
    for module in (loop, oci, sizing, storage):
        monkeypatch.setattr(module, "run_cmd", runner)
    return runner


@pytest.fixture
def cmd_failure() -> Callable[..., Handler]:
    return failing
