from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .lib.sizing import DEFAULT_BUFFER_MIB


@dataclass(frozen=True)
class ConvertOptions:
    fs_type: str = "ext4"
    buffer_mib: int = DEFAULT_BUFFER_MIB
    # Set whenever the caller chose a buffer, even one equal to the default.
    buffer_explicit: bool = False
    preallocate: bool = False
    dual_output: bool = False
    output: Optional[str] = None
    verbose: bool = False
    quiet: bool = False
    no_color: bool = False


@dataclass(frozen=True)
class FileConfig:
    raw: Dict[str, Any]

    @property
    def filesystem(self) -> Optional[str]:
        v = self.raw.get("filesystem")
        return str(v) if v else None

    @property
    def buffer_mib(self) -> Optional[int]:
        v = self.raw.get("buffer_mib")
        return None if v is None else int(v)

    @property
    def preallocate(self) -> Optional[bool]:
        v = self.raw.get("preallocate")
        return None if v is None else bool(v)

    @property
    def dual_output(self) -> Optional[bool]:
        v = self.raw.get("dual_output")
        return None if v is None else bool(v)

    @property
    def output(self) -> Optional[str]:
        v = self.raw.get("output")
        return str(v) if v else None

    def apply(self, opts: ConvertOptions) -> ConvertOptions:
        """Return *opts* with the values this file sets."""

        changes: Dict[str, Any] = {}
        if self.filesystem is not None:
            changes["fs_type"] = self.filesystem
        if self.buffer_mib is not None:
            changes["buffer_mib"] = self.buffer_mib
            changes["buffer_explicit"] = True
        if self.preallocate is not None:
            changes["preallocate"] = self.preallocate
        if self.dual_output is not None:
            changes["dual_output"] = self.dual_output
        if self.output is not None:
            changes["output"] = self.output
        return replace(opts, **changes)


def load_config(path: str) -> FileConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("fsify config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping/object")

    return FileConfig(raw=raw)
