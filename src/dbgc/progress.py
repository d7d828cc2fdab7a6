"""Progress reporting for sweeps.

``GarbageCollector`` calls ``start(total)`` once, ``step(index)`` after
each foreign-key tuple (0-based), and ``end()`` when done.

Usage:
    from dbgc.progress import NullProgress, RichProgress

    collector = GarbageCollector(..., progress=RichProgress(console))
"""

from typing import Protocol

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress as _RichBar, TextColumn


class Progress(Protocol):
    """Progress collaborator interface."""

    def start(self, total: int) -> None:
        ...

    def step(self, index: int) -> None:
        ...

    def end(self) -> None:
        ...


class NullProgress:
    """Progress sink that ignores everything."""

    def start(self, total: int) -> None:
        pass

    def step(self, index: int) -> None:
        pass

    def end(self) -> None:
        pass


class RichProgress:
    """Progress bar on a rich console.

    Args:
        console: Console to draw on; a new one if omitted.
        description: Label shown left of the bar.
    """

    def __init__(self, console: Console | None = None, description: str = "Foreign keys"):
        self._console = console or Console()
        self._description = description
        self._bar: _RichBar | None = None
        self._task = None

    def start(self, total: int) -> None:
        self._bar = _RichBar(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=self._console,
            transient=True,
        )
        self._bar.start()
        self._task = self._bar.add_task(self._description, total=total)

    def step(self, index: int) -> None:
        if self._bar is not None:
            self._bar.update(self._task, completed=index + 1)

    def end(self) -> None:
        if self._bar is not None:
            self._bar.stop()
            self._bar = None
