from __future__ import annotations
from typing import Sequence
from rich.console import Console
from rich.progress import (
    Progress, BarColumn, TextColumn, TimeElapsedColumn,
    TimeRemainingColumn, MofNCompleteColumn, SpinnerColumn, TaskID
)
from ..domain.factories import FactoryRecord
from ..domain.models import BlockWindow
from ..ports.progress import DiscoveryObserver

class RichProgressObserver(DiscoveryObserver):
    """Live progress bar over scanned windows; counts logs as they arrive."""
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)
        self.total_logs = 0
        self._task: TaskID | None = None
        self._range = ""
        self.progress = Progress(SpinnerColumn(),
                                 TextColumn("[bold blue]discovering factories[/]"),
                                 BarColumn(),
                                 MofNCompleteColumn(),
                                 TextColumn("•"),
                                 TimeElapsedColumn(),
                                 TextColumn("→"),
                                 TimeRemainingColumn(),
                                 TextColumn(" • {task.description}"),
                                 console=self.console,
                                 transient=False,
                                 expand=True,
                                 )

    def on_start(self, head: int, windows: Sequence[BlockWindow]) -> None:
        self.progress.start()
        self._range = f"0-{head:,}"
        self._task = self.progress.add_task(description=f"{self._range} • 0 logs", total=len(windows))

    def on_window_done(self, window: BlockWindow, logs: int) -> None:
        if self._task is None: return
        self.total_logs += logs
        self.progress.update(self._task, advance=1, description=f"{self._range} • {self.total_logs:,} logs")

    def on_finish(self, factories: Sequence[FactoryRecord]) -> None:
        self.stop()
        self.console.print(f"[bold green]✔[/] all factories discovered: {len(factories)}")

    def stop(self) -> None:
        if self._task is not None:
            self.progress.stop()
            self._task = None
