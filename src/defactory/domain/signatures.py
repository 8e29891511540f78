# defactory/domain/signatures.py
from __future__ import annotations

from enum import Enum
from typing import Iterable

from .value_types import Topic0


class FactoryKind(Enum):
    UNISWAP_V2 = "uniswap-v2"
    UNISWAP_V3 = "uniswap-v3"


# keccak256("PairCreated(address,address,address,uint256)")
PAIR_CREATED_EVENT_SIGNATURE = Topic0("0x0d3648bd0f6ba80134a33ba9275ac585d9d315f0ad8355cddefde31afa28d0e9")
# keccak256("PoolCreated(address,address,uint24,int24,address)")
POOL_CREATED_EVENT_SIGNATURE = Topic0("0x783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118")

_SIGNATURES: dict[FactoryKind, Topic0] = {
    FactoryKind.UNISWAP_V2: PAIR_CREATED_EVENT_SIGNATURE,
    FactoryKind.UNISWAP_V3: POOL_CREATED_EVENT_SIGNATURE,
}
_KINDS: dict[Topic0, FactoryKind] = {sig: kind for kind, sig in _SIGNATURES.items()}

def _check_registry(signatures: dict[FactoryKind, Topic0]) -> None:
    missing = set(FactoryKind) - set(signatures)
    if missing:
        raise RuntimeError(f"no discovery signature for {sorted(k.value for k in missing)}")
    if len(set(signatures.values())) != len(signatures):
        raise RuntimeError("discovery signatures must be unique")

_check_registry(_SIGNATURES)


def signature_for(kind: FactoryKind) -> Topic0:
    """Return the topic0 of the event `kind` emits for every pool it creates."""
    return _SIGNATURES[kind]

def kind_for(signature: str | None) -> FactoryKind | None:
    if not signature:
        return None
    return _KINDS.get(Topic0(signature.strip().lower()))

def signatures_for(kinds: Iterable[FactoryKind]) -> list[Topic0]:
    return sorted({signature_for(k) for k in kinds})
