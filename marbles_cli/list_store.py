from __future__ import annotations

import random
from dataclasses import dataclass, field
from pathlib import Path

from .cli_shared import Environment, OpError


def _read_items(path: Path) -> set[str]:
    try:
        raw = path.read_bytes()
    except OSError:
        # Missing or unreadable list files load as empty.
        return set()
    # Lines end at "\n" only; a lone "\r" is part of the item.
    lines = raw.split(b"\n")
    if lines and lines[-1] == b"":
        lines.pop()
    items: set[str] = set()
    for line in lines:
        if line.endswith(b"\r"):
            line = line[:-1]
        try:
            items.add(line.decode("utf-8"))
        except UnicodeDecodeError:
            continue
    return items


@dataclass
class ItemList:
    """One named list, loaded from and saved back to its backing file."""

    name: str
    path: Path
    items: set[str] = field(default_factory=set)

    @classmethod
    def load(cls, list_name: str, *, env: Environment | None = None) -> "ItemList":
        env = env or Environment.from_process()
        data_dir = env.data_dir()
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OpError(f"failed to create data directory {data_dir}: {e}") from e
        path = data_dir / list_name
        return cls(name=list_name, path=path, items=_read_items(path))

    def save(self) -> None:
        try:
            with open(self.path, "w", encoding="utf-8", newline="\n") as f:
                for item in self.sorted_items():
                    f.write(f"{item}\n")
                f.flush()
        except OSError as e:
            raise OpError(f"failed to write list {self.name!r} to {self.path}: {e}") from e

    def sorted_items(self) -> list[str]:
        return sorted(self.items)

    def add(self, item: str) -> bool:
        if item in self.items:
            return False
        self.items.add(item)
        return True

    def remove(self, item: str) -> bool:
        if item not in self.items:
            return False
        self.items.remove(item)
        return True

    def take_random(self, rng: random.Random | None = None) -> str | None:
        """Remove and return one item chosen uniformly at random, or None if empty."""
        if not self.items:
            return None
        item = (rng or random).choice(self.sorted_items())
        self.items.remove(item)
        return item

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, item: object) -> bool:
        return item in self.items
