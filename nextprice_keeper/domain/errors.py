from __future__ import annotations


class KeeperError(Exception):
    """Base class for keeper failures that drive retry/discard policy."""


class DispatchFailed(KeeperError):
    """Execution transaction was rejected, reverted or could not be confirmed."""

    def __init__(self, account: str, reason: str):
        super().__init__(f"dispatch failed for {account}: {reason}")
        self.account = account
        self.reason = reason


class UpstreamQueryFailed(KeeperError):
    """A read-only chain query (base asset, round id, logs) failed."""

    def __init__(self, what: str, reason: str):
        super().__init__(f"{what} query failed: {reason}")
        self.what = what
        self.reason = reason


class DeploymentError(KeeperError):
    pass


class ConfigError(KeeperError):
    pass
