# defactory/ports/rpc.py
from __future__ import annotations

from typing import Protocol, Sequence
from ..domain.models import EventLog
from ..domain.value_types import Topic0


class ChainLogSource(Protocol):
    """Port defining the contract for a chain log source (JSON-RPC or fake)."""

    async def get_logs(
        self,
        topic0s: Sequence[Topic0],
        from_block: int,
        to_block: int,
    ) -> list[EventLog]:
        """Return logs from any emitter whose topic0 is in `topic0s`, for [from_block, to_block] inclusive."""

    async def latest_block(self) -> int:
        """Return the current chain head as an integer."""
