from .errors import ConfigError, DeploymentError, DispatchFailed, KeeperError, UpstreamQueryFailed
from .models import (
    MAX_FAILURES,
    STALE_ROUNDS,
    DispatchOutcome,
    ExecutionReceipt,
    NewBlock,
    Order,
    OrderRemoved,
    OrderSubmitted,
    Verdict,
    decode_tracking_code,
)

__all__ = [
    "ConfigError",
    "DeploymentError",
    "DispatchFailed",
    "KeeperError",
    "UpstreamQueryFailed",
    "MAX_FAILURES",
    "STALE_ROUNDS",
    "DispatchOutcome",
    "ExecutionReceipt",
    "NewBlock",
    "Order",
    "OrderRemoved",
    "OrderSubmitted",
    "Verdict",
    "decode_tracking_code",
]
