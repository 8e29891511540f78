# defactory/ports/progress.py
from __future__ import annotations

from typing import Protocol, Sequence
from ..domain.factories import FactoryRecord
from ..domain.models import BlockWindow


class DiscoveryObserver(Protocol):
    """Side channel notified while a discovery scan runs. Errors it raises are logged and ignored."""

    def on_start(self, head: int, windows: Sequence[BlockWindow]) -> None: ...

    def on_window_done(self, window: BlockWindow, logs: int) -> None: ...

    def on_finish(self, factories: Sequence[FactoryRecord]) -> None: ...


class NullObserver(DiscoveryObserver):
    def on_start(self, head: int, windows: Sequence[BlockWindow]) -> None: pass
    def on_window_done(self, window: BlockWindow, logs: int) -> None: pass
    def on_finish(self, factories: Sequence[FactoryRecord]) -> None: pass
