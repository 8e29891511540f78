from __future__ import annotations
from dataclasses import dataclass
from typing import Collection, Iterable, Iterator
from ..domain.factories import FactoryRecord, new_empty_factory
from ..domain.models import EventLog
from ..domain.signatures import FactoryKind
from ..domain.value_types import Address

def _log_key(log: EventLog) -> tuple[int, int, str]:
    return (log.block_number, log.log_index, log.topic0 or "")

@dataclass(slots=True)
class AggregateEntry:
    record: FactoryRecord
    count: int = 0
    discovered_by: tuple[int, int, str] = (0, 0, "")

class FactoryAggregator:
    """
    Scan-local map of emitter address -> (empty factory record, activity count).

    One log per address is its discovery log and does not count as activity;
    every other log increments the count. The discovery log is the earliest by
    (block_number, log_index), and it alone decides the record's kind and
    `creation_block`, so windows can be folded in any order.
    """
    def __init__(self, kinds: Collection[FactoryKind] | None = None) -> None:
        self.kinds = kinds
        self._entries: dict[Address, AggregateEntry] = {}

    def _new_record(self, log: EventLog, address: Address) -> FactoryRecord:
        # TODO: check the emitter actually implements the factory interface before keeping it
        record = new_empty_factory(log.topic0, self.kinds)
        record.address = address
        record.creation_block = log.block_number
        return record

    def observe(self, log: EventLog) -> None:
        address = Address(log.address.lower())
        key = _log_key(log)
        entry = self._entries.get(address)
        if entry is None:
            self._entries[address] = AggregateEntry(record=self._new_record(log, address), discovered_by=key)
            return
        entry.count += 1
        if key < entry.discovered_by:
            entry.record = self._new_record(log, address)
            entry.discovered_by = key

    def observe_many(self, logs: Iterable[EventLog]) -> None:
        for log in logs:
            self.observe(log)

    def count(self, address: str) -> int | None:
        entry = self._entries.get(Address(address.lower()))
        return None if entry is None else entry.count

    def entries(self) -> Iterator[tuple[Address, AggregateEntry]]:
        return iter(self._entries.items())

    def qualifying(self, threshold: int) -> list[FactoryRecord]:
        return [e.record for e in self._entries.values() if e.count >= threshold]

    def __len__(self) -> int: return len(self._entries)
    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and Address(address.lower()) in self._entries
