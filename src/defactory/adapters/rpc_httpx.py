from __future__ import annotations
import asyncio, logging, httpx
from typing import Any, Sequence
from ..domain.errors import TransportError
from ..domain.models import EventLog
from ..domain.value_types import Address, Topic0
from ..ports.rpc import ChainLogSource

logger = logging.getLogger(__name__)

def _to_hex_block(n: int) -> str: return hex(int(n))
def _is_topic_hash(x: str) -> bool: return isinstance(x, str) and x.startswith("0x") and len(x)==66
def _normalize_topic0_list(t0s: Sequence[Topic0]) -> list[str]:
    out: list[str] = []
    for t in t0s:
        s = str(t).strip().lower()
        out.append(s)
    return out

def _build_topics_param(topic0s: Sequence[Topic0]) -> list[list[str]]:
    t0s = _normalize_topic0_list(topic0s)
    if not t0s or not all(_is_topic_hash(x) for x in t0s):
        raise ValueError(f"Invalid topic0(s): {t0s}")
    return [t0s]

def _parse_log(rl: dict[str, Any]) -> EventLog:
    topics = tuple(Topic0(str(t).lower()) for t in rl.get("topics", []))
    return EventLog(
        address=Address(rl["address"].lower()),
        topics=topics,
        data_hex=str(rl.get("data") or "0x"),
        block_number=int(rl["blockNumber"], 16),
        tx_hash=(rl.get("transactionHash") or "").lower(),
        log_index=int(rl.get("logIndex") or "0x0", 16),
    )

class HttpxRPC(ChainLogSource):
    """
    JSON-RPC log source over httpx.

    Rate limiting (HTTP 429) is retried here with Retry-After / exponential backoff;
    anything else that goes wrong surfaces as TransportError.
    """
    def __init__(
        self,
        rpc_url: str,
        timeout_s: int = 20,
        max_conn: int = 64,
        *,
        max_attempts: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.max_attempts = max_attempts
        self.client = httpx.AsyncClient(
            http2=transport is None,
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(max_connections=max_conn, max_keepalive_connections=max(1, max_conn//2)),
            transport=transport,
        )

    async def __aenter__(self) -> "HttpxRPC":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc":"2.0","id":1,"method":method,"params":params}
        for attempt in range(self.max_attempts):
            try:
                r = await self.client.post(self.rpc_url, json=payload)
                if r.status_code == 429:
                    ra = r.headers.get("Retry-After")
                    delay = max(1.0, float(ra)) if ra and ra.isdigit() else (1.0 * (2**attempt))
                    logger.warning("%s rate limited, retrying in %.1fs (attempt %d/%d)",
                                   method, delay, attempt + 1, self.max_attempts)
                    await asyncio.sleep(delay); continue
                r.raise_for_status()
                data = r.json()
            except httpx.HTTPError as e:
                raise TransportError(f"{method} transport failure: {e}", method=method) from e
            except ValueError as e:
                raise TransportError(f"{method} returned invalid JSON", method=method) from e
            if not isinstance(data, dict):
                raise TransportError(f"{method} returned a non-object response", method=method)
            if "error" in data:
                err = data["error"]
                code = err.get("code") if isinstance(err, dict) else None
                msg = err.get("message") if isinstance(err, dict) else str(err)
                raise TransportError(f"{method} RPC error code={code} message={msg}",
                                     method=method, details={"code": code})
            if "result" not in data:
                raise TransportError(f"{method} response has no result", method=method)
            return data["result"]
        raise TransportError(f"Retries exhausted for {method}", method=method)

    async def latest_block(self) -> int:
        res = await self._call("eth_blockNumber", [])
        try:
            return int(res, 16)
        except (TypeError, ValueError) as e:
            raise TransportError(f"eth_blockNumber returned {res!r}", method="eth_blockNumber") from e

    async def get_logs(self, topic0s: Sequence[Topic0], from_block: int, to_block: int) -> list[EventLog]:
        res = await self._call("eth_getLogs", [{
            "fromBlock": _to_hex_block(from_block),
            "toBlock": _to_hex_block(to_block),
            "topics": _build_topics_param(topic0s),
        }])
        try:
            return [_parse_log(rl) for rl in res or []]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise TransportError(f"eth_getLogs returned a malformed log: {e}", method="eth_getLogs") from e
