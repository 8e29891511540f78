from __future__ import annotations
import asyncio, logging
from typing import Iterable

from ..domain.factories import FactoryRecord
from ..domain.models import BlockWindow
from ..domain.signatures import FactoryKind, signatures_for
from ..ports.progress import DiscoveryObserver, NullObserver
from ..ports.rpc import ChainLogSource
from .aggregation import FactoryAggregator
from .planning import DEFAULT_STEP, plan_windows

logger = logging.getLogger(__name__)


def _notify(observer: DiscoveryObserver, event: str, *args: object) -> None:
    try:
        getattr(observer, event)(*args)
    except Exception:
        logger.warning("progress observer failed in %s", event, exc_info=True)


async def discover_factories(
    kinds: Iterable[FactoryKind],
    activity_threshold: int,
    source: ChainLogSource,
    *,
    step: int = DEFAULT_STEP,
    concurrency: int = 1,
    observer: DiscoveryObserver | None = None,
    sort_by_address: bool = False,
) -> list[FactoryRecord]:
    """
    Scan [0, head] for pool-creation events of `kinds` and return one empty
    record per emitting address whose activity count reaches `activity_threshold`.

    The first event seen from an address only registers it; activity counts the
    events after that. Any error from `source` aborts the whole scan.
    """
    requested = frozenset(kinds)
    if not requested:
        return []
    if activity_threshold < 0:
        raise ValueError(f"activity_threshold must be >= 0, got {activity_threshold}")
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    if step < 1:
        raise ValueError(f"step must be >= 1, got {step}")
    observer = observer or NullObserver()

    topic0s = signatures_for(requested)
    head = await source.latest_block()
    windows = plan_windows(0, head, step)
    logger.info("scanning blocks 0-%d in %d windows of %d for %s",
                head, len(windows), step, ", ".join(sorted(k.value for k in requested)))
    _notify(observer, "on_start", head, windows)

    agg = FactoryAggregator(requested)
    agg_lock = asyncio.Lock()
    sem = asyncio.Semaphore(concurrency)

    async def scan_window(w: BlockWindow) -> None:
        async with sem:
            logs = await source.get_logs(topic0s, w.from_block, w.to_block)
        async with agg_lock:
            agg.observe_many(logs)
        logger.debug("window %d-%d: %d logs, %d factories so far", w.from_block, w.to_block, len(logs), len(agg))
        _notify(observer, "on_window_done", w, len(logs))

    tasks = [asyncio.create_task(scan_window(w)) for w in windows]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    factories = agg.qualifying(activity_threshold)
    if sort_by_address:
        factories.sort(key=lambda f: f.address)
    logger.info("%d of %d candidate factories have >= %d pools", len(factories), len(agg), activity_threshold)
    _notify(observer, "on_finish", factories)
    return factories
