from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path


class MarblesError(Exception):
    pass


class UsageError(MarblesError):
    pass


class OpError(MarblesError):
    pass


MARBLES_HOME = "MARBLES_HOME"
MARBLES_LIST = "MARBLES_LIST"
EDITOR = "EDITOR"

APP_DIR_NAME = "marbles"
DEFAULT_LIST_NAME = "default_list"
DEFAULT_EDITOR = "vim"


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


@dataclass(frozen=True)
class Environment:
    """Process environment as seen by list storage and the editor launcher.

    Everything that reads ``os.environ`` or the home directory goes through
    this object, so tests can build one around a plain dict and a tmp path.
    """

    environ: Mapping[str, str] = field(default_factory=dict)
    platform: str = "linux"
    home: Path = field(default_factory=Path.home)

    @classmethod
    def from_process(cls) -> "Environment":
        return cls(environ=dict(os.environ), platform=sys.platform, home=Path.home())

    def get(self, *names: str) -> str | None:
        for n in names:
            v = (self.environ.get(n) or "").strip()
            if v:
                return v
        return None

    def local_data_home(self) -> Path:
        if self.platform.startswith("win"):
            base = self.get("LOCALAPPDATA")
            return Path(base) if base else self.home / "AppData" / "Local"
        if self.platform == "darwin":
            return self.home / "Library" / "Application Support"
        base = self.get("XDG_DATA_HOME")
        # XDG ignores relative paths
        if base and Path(base).is_absolute():
            return Path(base)
        return self.home / ".local" / "share"

    def data_dir(self) -> Path:
        override = self.get(MARBLES_HOME)
        if override:
            return Path(override).expanduser()
        return self.local_data_home() / APP_DIR_NAME

    def editor(self) -> str:
        return self.get(EDITOR) or DEFAULT_EDITOR

    def default_list_name(self) -> str:
        return self.get(MARBLES_LIST) or DEFAULT_LIST_NAME


@dataclass(frozen=True)
class GlobalOpts:
    list_name: str
    quiet: bool
    env: Environment


def _validate_list_name(name: str | None) -> str:
    # Used verbatim as the file name; only blank names are refused.
    v = name or ""
    if not v.strip():
        raise UsageError("missing list name (pass --list or set MARBLES_LIST)")
    if v in (".", ".."):
        raise UsageError(f"invalid list name: {v!r}")
    seps = {"/", os.sep}
    if os.altsep:
        seps.add(os.altsep)
    if any(s in v for s in seps):
        raise UsageError(f"invalid list name: {v!r} (path separators are not allowed)")
    return v
