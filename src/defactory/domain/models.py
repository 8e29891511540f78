from __future__ import annotations
from dataclasses import dataclass
from .value_types import Address, Topic0

@dataclass(slots=True, frozen=True)
class BlockWindow:
    from_block: int
    to_block: int
    def span(self) -> int: return self.to_block - self.from_block + 1

@dataclass(slots=True, frozen=True)
class EventLog:
    address: Address
    topics: tuple[Topic0, ...]         # first topic is the event signature
    data_hex: str = "0x"
    block_number: int = 0
    tx_hash: str = ""
    log_index: int = 0

    @property
    def topic0(self) -> Topic0 | None:
        return self.topics[0] if self.topics else None
