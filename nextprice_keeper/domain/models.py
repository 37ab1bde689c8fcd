from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

STALE_ROUNDS = 2
MAX_FAILURES = 100


class Verdict(str, Enum):
    PENDING = "pending"
    READY = "ready"
    STALE = "stale"


class DispatchOutcome(str, Enum):
    SKIPPED = "skipped"
    EXECUTED = "executed"
    RETRY = "retry"
    DISCARDED = "discarded"


@dataclass
class Order:
    """A deferred next-price order waiting for its target oracle round.

    Amounts and the target round stay decimal strings so nothing is ever
    squeezed through a float; `market` is the shared contract handle the
    order was observed on.
    """

    account: str
    market: Any
    size_delta: str
    target_round_id: str
    commit_deposit: str
    keeper_deposit: str
    tracking_code: str
    failures: int = 0

    @property
    def target_round(self) -> int:
        return int(self.target_round_id)

    def describe(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "market": getattr(self.market, "address", str(self.market)),
            "size_delta": self.size_delta,
            "target_round_id": self.target_round_id,
            "commit_deposit": self.commit_deposit,
            "keeper_deposit": self.keeper_deposit,
            "tracking_code": self.tracking_code,
            "failures": self.failures,
        }


@dataclass(frozen=True)
class OrderSubmitted:
    order: Order


@dataclass(frozen=True)
class OrderRemoved:
    account: str
    market_address: str = ""


@dataclass(frozen=True)
class NewBlock:
    number: int


@dataclass(frozen=True)
class ExecutionReceipt:
    tx_hash: str
    block_number: int
    gas_used: int = 0


def decode_tracking_code(raw: bytes | str) -> str:
    """Decode a NUL-padded bytes32 tag into its text form."""
    if isinstance(raw, str):
        text = raw[2:] if raw.startswith("0x") else raw
        raw = bytes.fromhex(text)
    data = bytes(raw)
    if len(data) != 32:
        raise ValueError(f"invalid bytes32 - not 32 bytes long (got {len(data)})")
    if data[31] != 0:
        raise ValueError("invalid bytes32 string - no null terminator")
    return data.split(b"\x00", 1)[0].decode("utf-8")
