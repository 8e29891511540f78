"""
Configuration for discovery runs.

Values come from, in increasing priority: defaults, a `.env` file / the process
environment (`DEFACTORY_*`), and explicit overrides (usually CLI options).
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

from dotenv import find_dotenv, load_dotenv

from .application.planning import DEFAULT_STEP
from .domain.errors import ConfigurationError
from .domain.signatures import FactoryKind

ENV_PREFIX = "DEFACTORY_"


@dataclass(frozen=True)
class DiscoveryConfig:
    """Immutable settings for one discovery call."""

    rpc_url: Optional[str] = None
    step: int = DEFAULT_STEP
    concurrency: int = 1
    timeout_s: int = 20
    max_connections: int = 64
    activity_threshold: int = 0
    kinds: tuple[FactoryKind, ...] = field(default_factory=lambda: tuple(FactoryKind))

    def validate(self) -> "DiscoveryConfig":
        if self.step < 1:
            raise ConfigurationError(f"step must be >= 1, got {self.step}")
        if self.concurrency < 1:
            raise ConfigurationError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.timeout_s < 1:
            raise ConfigurationError(f"timeout_s must be >= 1, got {self.timeout_s}")
        if self.max_connections < 1:
            raise ConfigurationError(f"max_connections must be >= 1, got {self.max_connections}")
        if self.activity_threshold < 0:
            raise ConfigurationError(f"activity_threshold must be >= 0, got {self.activity_threshold}")
        return self

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise ConfigurationError(f"No RPC endpoint: pass --rpc or set {ENV_PREFIX}RPC_URL")
        return self.rpc_url


def parse_kinds(raw: str | Iterable[str | FactoryKind]) -> tuple[FactoryKind, ...]:
    names = raw.split(",") if isinstance(raw, str) else list(raw)
    out: list[FactoryKind] = []
    for name in names:
        name = (name.value if isinstance(name, FactoryKind) else name).strip().lower()
        if not name:
            continue
        try:
            kind = FactoryKind(name)
        except ValueError:
            valid = ", ".join(k.value for k in FactoryKind)
            raise ConfigurationError(f"Unknown factory kind {name!r} (expected one of: {valid})")
        if kind not in out:
            out.append(kind)
    return tuple(out)


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.replace("_", ""))
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}")


def config_from_env() -> dict[str, Any]:
    values: dict[str, Any] = {
        "rpc_url": os.environ.get(ENV_PREFIX + "RPC_URL") or None,
        "step": _env_int("STEP"),
        "concurrency": _env_int("CONCURRENCY"),
        "timeout_s": _env_int("TIMEOUT_S"),
        "activity_threshold": _env_int("THRESHOLD"),
    }
    kinds = os.environ.get(ENV_PREFIX + "KINDS")
    if kinds:
        values["kinds"] = parse_kinds(kinds)
    return {k: v for k, v in values.items() if v is not None}


def load_config(dotenv_path: Optional[str] = None, **overrides: Any) -> DiscoveryConfig:
    """Build a validated config; `None` overrides are ignored."""
    load_dotenv(dotenv_path or find_dotenv(usecwd=True), override=False)
    values = config_from_env()
    values.update({k: v for k, v in overrides.items() if v is not None})
    if "kinds" in values:
        values["kinds"] = parse_kinds(values["kinds"])
    if values.get("kinds") == ():
        values.pop("kinds")
    return replace(DiscoveryConfig(), **values).validate()
