from __future__ import annotations
from ..domain.models import BlockWindow

DEFAULT_STEP = 100_000

def plan_windows(start_block: int, end_block: int, step: int = DEFAULT_STEP) -> list[BlockWindow]:
    """Tile [start_block, end_block] with inclusive windows of at most `step` blocks."""
    if step < 1:
        raise ValueError(f"step must be >= 1, got {step}")
    out: list[BlockWindow] = []
    b = start_block
    while b <= end_block:
        fb, tb = b, min(end_block, b + step - 1)
        out.append(BlockWindow(from_block=fb, to_block=tb))
        b = tb + 1
    return out
