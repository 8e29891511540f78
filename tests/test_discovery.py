"""Tests for the windowed factory discovery scan."""

import asyncio
import random

import pytest

from defactory.application.use_cases import discover_factories
from defactory.domain.errors import UnrecognizedSignature
from defactory.domain.factories import UniswapV2Factory, UniswapV3Factory
from defactory.domain.models import BlockWindow
from defactory.domain.signatures import (
    PAIR_CREATED_EVENT_SIGNATURE,
    POOL_CREATED_EVENT_SIGNATURE,
    FactoryKind,
)

from conftest import UNKNOWN_SIG, FakeLogSource, UnfilteredLogSource, make_log, v2_log, v3_log

AA = "0x" + "aa" * 20
BB = "0x" + "bb" * 20
CC = "0x" + "cc" * 20
ALL_KINDS = {FactoryKind.UNISWAP_V2, FactoryKind.UNISWAP_V3}


class TestDiscoverFactories:
    @pytest.mark.asyncio
    async def test_scenario(self, observer):
        """Three V2 logs from one address across the first two windows, threshold 2."""
        source = FakeLogSource(
            head=250_000,
            logs=[v2_log(AA, 10), v2_log(AA, 150_000), v2_log(AA, 199_000), make_log(AA, UNKNOWN_SIG, 5)],
        )
        result = await discover_factories({FactoryKind.UNISWAP_V2}, 2, source, step=100_000, observer=observer)

        assert len(result) == 1
        (rec,) = result
        assert isinstance(rec, UniswapV2Factory)
        assert rec.kind is FactoryKind.UNISWAP_V2
        assert rec.address == AA
        assert rec.creation_block == 10
        assert [(fb, tb) for _, fb, tb in source.calls] == [(0, 99_999), (100_000, 199_999), (200_000, 250_000)]
        assert observer.started == (250_000, [BlockWindow(0, 99_999), BlockWindow(100_000, 199_999), BlockWindow(200_000, 250_000)])
        assert [logs for _, logs in observer.windows] == [1, 2, 0]
        assert observer.finished == result

    @pytest.mark.asyncio
    async def test_threshold_above_count_excludes(self):
        source = FakeLogSource(head=250_000, logs=[v2_log(AA, 10), v2_log(AA, 150_000), v2_log(AA, 199_000)])
        assert await discover_factories({FactoryKind.UNISWAP_V2}, 3, source) == []

    @pytest.mark.asyncio
    async def test_empty_kinds_makes_no_calls(self):
        source = FakeLogSource(head=1_000_000, logs=[v2_log(AA, 1)])
        assert await discover_factories(set(), 0, source) == []
        assert source.network_calls == 0

    @pytest.mark.asyncio
    async def test_single_query_per_window_for_all_kinds(self):
        source = FakeLogSource(head=99, logs=[v2_log(AA, 1), v3_log(BB, 2)])
        result = await discover_factories(ALL_KINDS, 0, source, step=50, sort_by_address=True)

        assert len(source.calls) == 2
        for topics, _, _ in source.calls:
            assert set(topics) == {PAIR_CREATED_EVENT_SIGNATURE, POOL_CREATED_EVENT_SIGNATURE}
        assert [type(r) for r in result] == [UniswapV2Factory, UniswapV3Factory]
        assert [r.address for r in result] == [AA, BB]

    @pytest.mark.asyncio
    async def test_only_requested_kinds_are_queried(self):
        source = FakeLogSource(head=10, logs=[v2_log(AA, 1), v3_log(BB, 2), v3_log(BB, 3)])
        result = await discover_factories([FactoryKind.UNISWAP_V3], 0, source)
        assert [(r.kind, r.address) for r in result] == [(FactoryKind.UNISWAP_V3, BB)]
        assert source.calls == [((POOL_CREATED_EVENT_SIGNATURE,), 0, 10)]

    @pytest.mark.asyncio
    async def test_threshold_boundary(self):
        logs = [v2_log(AA, i) for i in range(4)] + [v2_log(BB, i) for i in range(3)]
        source = FakeLogSource(head=10, logs=logs)
        result = await discover_factories(ALL_KINDS, 3, source)
        assert [r.address for r in result] == [AA]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 3, 16])
    async def test_same_result_for_any_concurrency(self, concurrency):
        rng = random.Random(7)
        addrs = ["0x" + f"{i:040x}" for i in range(1, 30)]
        logs = []
        for addr in addrs:
            make = v2_log if int(addr, 16) % 2 else v3_log
            logs.extend(make(addr, rng.randrange(0, 5_000)) for _ in range(rng.randrange(1, 8)))

        async def run(c):
            source = FakeLogSource(head=4_999, logs=logs)
            found = await discover_factories(ALL_KINDS, 3, source, step=97, concurrency=c, sort_by_address=True)
            return [(r.kind, r.address, r.creation_block) for r in found]

        assert await run(concurrency) == await run(1)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        in_flight = 0
        peak = 0

        class SlowSource(FakeLogSource):
            async def get_logs(self, topic0s, from_block, to_block):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.001)
                in_flight -= 1
                return await super().get_logs(topic0s, from_block, to_block)

        source = SlowSource(head=999)
        await discover_factories(ALL_KINDS, 0, source, step=10, concurrency=4)
        assert len(source.calls) == 100
        assert 1 < peak <= 4

    @pytest.mark.asyncio
    async def test_result_independent_of_window_completion_order(self):
        class FirstWindowLast(FakeLogSource):
            async def get_logs(self, topic0s, from_block, to_block):
                if from_block == 0:
                    await asyncio.sleep(0.01)
                return await super().get_logs(topic0s, from_block, to_block)

        async def run(concurrency):
            source = FirstWindowLast(head=199, logs=[v3_log(AA, 5), v2_log(AA, 150)])
            found = await discover_factories(ALL_KINDS, 0, source, step=100, concurrency=concurrency)
            return [(r.kind, r.address, r.creation_block) for r in found]

        expected = [(FactoryKind.UNISWAP_V3, AA, 5)]
        assert await run(1) == expected
        assert await run(2) == expected

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_affect_scan(self, caplog):
        class BrokenObserver:
            def on_start(self, head, windows):
                raise RuntimeError("start")

            def on_window_done(self, window, logs):
                raise RuntimeError("window")

            def on_finish(self, factories):
                raise RuntimeError("finish")

        source = FakeLogSource(head=299, logs=[v2_log(AA, 1), v2_log(AA, 250)])
        result = await discover_factories(ALL_KINDS, 1, source, step=100, observer=BrokenObserver())

        assert [r.address for r in result] == [AA]
        assert len(source.calls) == 3
        failures = [r for r in caplog.records if r.levelname == "WARNING" and "observer" in r.getMessage()]
        assert len(failures) == 5

    @pytest.mark.asyncio
    async def test_transport_failure_aborts_scan(self, observer):
        source = FakeLogSource(head=299, logs=[v2_log(AA, 1)], fail_on={(100, 199)})
        with pytest.raises(ConnectionError):
            await discover_factories(ALL_KINDS, 0, source, step=100, observer=observer)
        assert observer.finished is None

    @pytest.mark.asyncio
    async def test_head_failure_aborts_before_any_log_query(self):
        class DeadSource(FakeLogSource):
            async def latest_block(self):
                raise TimeoutError("node down")

        source = DeadSource(head=0)
        with pytest.raises(TimeoutError):
            await discover_factories(ALL_KINDS, 0, source)
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_log_outside_filter_is_rejected(self):
        source = UnfilteredLogSource(head=10, logs=[make_log(CC, UNKNOWN_SIG, 3)])
        with pytest.raises(UnrecognizedSignature):
            await discover_factories(ALL_KINDS, 0, source)

    @pytest.mark.asyncio
    async def test_log_of_unrequested_kind_is_rejected(self):
        source = UnfilteredLogSource(head=10, logs=[v3_log(CC, 3)])
        with pytest.raises(UnrecognizedSignature):
            await discover_factories([FactoryKind.UNISWAP_V2], 0, source)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [{"activity_threshold": -1}, {"step": 0}, {"concurrency": 0}],
    )
    async def test_invalid_arguments(self, kwargs):
        args = {"activity_threshold": 0, **kwargs}
        threshold = args.pop("activity_threshold")
        source = FakeLogSource(head=10)
        with pytest.raises(ValueError):
            await discover_factories(ALL_KINDS, threshold, source, **args)
        assert source.network_calls == 0

    @pytest.mark.asyncio
    async def test_genesis_only_chain(self):
        source = FakeLogSource(head=0, logs=[v2_log(AA, 0)])
        result = await discover_factories(ALL_KINDS, 0, source)
        assert [r.address for r in result] == [AA]
        assert source.calls[0][1:] == (0, 0)
