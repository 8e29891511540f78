# defactory/domain/factories.py
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Collection, Union

from .errors import UnrecognizedSignature
from .signatures import FactoryKind, kind_for
from .value_types import Address

_ZERO_ADDRESS = Address("0x" + "0" * 40)


@dataclass(slots=True)
class UniswapV2Factory:
    kind: ClassVar[FactoryKind] = FactoryKind.UNISWAP_V2
    address: Address = _ZERO_ADDRESS
    creation_block: int = 0
    fee: int = 300              # 1e-5 units, 300 = 0.3%


@dataclass(slots=True)
class UniswapV3Factory:
    kind: ClassVar[FactoryKind] = FactoryKind.UNISWAP_V3
    address: Address = _ZERO_ADDRESS
    creation_block: int = 0


FactoryRecord = Union[UniswapV2Factory, UniswapV3Factory]

_RECORD_TYPES: dict[FactoryKind, type] = {
    FactoryKind.UNISWAP_V2: UniswapV2Factory,
    FactoryKind.UNISWAP_V3: UniswapV3Factory,
}

def _check_record_types(record_types: dict[FactoryKind, type]) -> None:
    missing = set(FactoryKind) - set(record_types)
    if missing:
        raise RuntimeError(f"no record type for {sorted(k.value for k in missing)}")

_check_record_types(_RECORD_TYPES)


def new_empty_factory(
    signature: str | None,
    kinds: Collection[FactoryKind] | None = None,
) -> FactoryRecord:
    """
    Build a default record of the kind whose discovery event is `signature`.

    Only the kind is decided here; the caller fills in the address. When `kinds`
    is given, signatures belonging to other kinds are rejected as well.
    """
    kind = kind_for(signature)
    if kind is None or (kinds is not None and kind not in kinds):
        raise UnrecognizedSignature(signature, {"requested": sorted(k.value for k in kinds or ())})
    return _RECORD_TYPES[kind]()
