"""Shared fixtures: an in-memory chain log source."""

from typing import Sequence

import pytest

from defactory.domain.models import EventLog
from defactory.domain.signatures import (
    PAIR_CREATED_EVENT_SIGNATURE,
    POOL_CREATED_EVENT_SIGNATURE,
)
from defactory.domain.value_types import Address, Topic0

UNKNOWN_SIG = Topic0("0x" + "ab" * 32)


def make_log(address: str, topic0: str = PAIR_CREATED_EVENT_SIGNATURE, block: int = 0) -> EventLog:
    return EventLog(address=Address(address.lower()), topics=(Topic0(topic0),), block_number=block)


def v2_log(address: str, block: int = 0) -> EventLog:
    return make_log(address, PAIR_CREATED_EVENT_SIGNATURE, block)


def v3_log(address: str, block: int = 0) -> EventLog:
    return make_log(address, POOL_CREATED_EVENT_SIGNATURE, block)


class FakeLogSource:
    """Serves logs by block number and filters by topic0 like a real node."""

    def __init__(self, head: int, logs: Sequence[EventLog] = (), fail_on: set | None = None):
        self.head = head
        self.logs = list(logs)
        self.fail_on = fail_on or set()
        self.head_calls = 0
        self.calls: list[tuple[tuple[str, ...], int, int]] = []

    async def latest_block(self) -> int:
        self.head_calls += 1
        return self.head

    async def get_logs(self, topic0s, from_block, to_block):
        self.calls.append((tuple(topic0s), from_block, to_block))
        if (from_block, to_block) in self.fail_on:
            raise ConnectionError(f"boom {from_block}-{to_block}")
        wanted = set(topic0s)
        return [
            log
            for log in self.logs
            if from_block <= log.block_number <= to_block and log.topic0 in wanted
        ]

    @property
    def network_calls(self) -> int:
        return self.head_calls + len(self.calls)


class UnfilteredLogSource(FakeLogSource):
    """A misbehaving node that ignores the topic filter."""

    async def get_logs(self, topic0s, from_block, to_block):
        self.calls.append((tuple(topic0s), from_block, to_block))
        return [log for log in self.logs if from_block <= log.block_number <= to_block]


class RecordingObserver:
    def __init__(self):
        self.started = None
        self.windows = []
        self.finished = None

    def on_start(self, head, windows):
        self.started = (head, list(windows))

    def on_window_done(self, window, logs):
        self.windows.append((window, logs))

    def on_finish(self, factories):
        self.finished = list(factories)


@pytest.fixture
def observer():
    return RecordingObserver()
