from __future__ import annotations

import random
import time
from collections.abc import Callable, Sequence
from typing import Protocol

from rich import box
from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

DEFAULT_TICKS = 30
DEFAULT_DELAY_SECONDS = 0.1
DEFAULT_KILL_CHANCE = 0.1


class RollSink(Protocol):
    def start(self, total: int) -> None: ...

    def frame(self, visible: list[str], killed: str | None) -> None: ...

    def finish(self, winner: str) -> None: ...


def animate_roll(
    items: Sequence[str],
    winner: str,
    *,
    sink: RollSink,
    rng: random.Random | None = None,
    ticks: int = DEFAULT_TICKS,
    delay: float = DEFAULT_DELAY_SECONDS,
    kill_chance: float = DEFAULT_KILL_CHANCE,
    sleep: Callable[[float], None] = time.sleep,
) -> list[str]:
    """Play the shuffle-and-knockout animation for an already drawn winner.

    ``items`` is the list as it was before the draw and must contain
    ``winner``. Each tick swaps two preview slots and, with probability
    ``kill_chance``, knocks out one visible item that is not the winner.
    Returns the preview left standing after the last tick.
    """
    if winner not in items:
        raise ValueError(f"winner {winner!r} is not among the rolled items")
    rng = rng or random.Random()
    preview = list(items)
    rng.shuffle(preview)

    sink.start(len(preview))
    try:
        for _ in range(max(0, ticks)):
            killed: str | None = None
            if len(preview) > 1:
                i = rng.randrange(len(preview))
                j = rng.randrange(len(preview))
                preview[i], preview[j] = preview[j], preview[i]
                if rng.random() < kill_chance:
                    killed = rng.choice([p for p in preview if p != winner])
                    preview.remove(killed)
            sink.frame(list(preview), killed)
            sleep(delay)
    finally:
        sink.finish(winner)
    return preview


class RichRollSink:
    """Redraws the preview table in place with a transient Rich ``Live``."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self._live: Live | None = None
        self._total = 0

    def _render(self, visible: list[str], killed: str | None = None) -> Table:
        table = Table(
            box=box.ROUNDED,
            title=f"{len(visible)} of {self._total} still rolling",
            show_header=True,
        )
        table.add_column("#", justify="right")
        table.add_column("Title")
        for i, item in enumerate(visible, start=1):
            table.add_row(str(i), Text(item))
        if killed is not None:
            table.add_row("x", Text(killed, style="strike dim red"))
        return table

    def start(self, total: int) -> None:
        self._total = total
        self._live = Live(
            self._render([]),
            console=self.console,
            refresh_per_second=20,
            transient=True,
        )
        self._live.start()

    def frame(self, visible: list[str], killed: str | None) -> None:
        if self._live is not None:
            self._live.update(self._render(visible, killed), refresh=True)

    def finish(self, winner: str) -> None:
        del winner
        if self._live is not None:
            self._live.stop()
            self._live = None
