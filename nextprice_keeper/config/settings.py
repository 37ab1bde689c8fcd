from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from nextprice_keeper.domain import ConfigError

KOVAN_NETWORK = "optimism-kovan"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.environ.get(name)
    if raw is None:
        value = default
    else:
        value = int(raw)
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_float(name: str, default: float, min_value: float | None = None) -> float:
    raw = os.environ.get(name)
    if raw is None:
        value = default
    else:
        value = float(raw)
    if min_value is not None:
        value = max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    network: str
    api_key: str
    rpc_url_override: str
    private_key: str
    deployments_dir: str
    dry_run: bool
    data_dir: str
    log_level: str
    poll_interval: float
    tx_timeout: float
    status_enabled: bool
    status_port: int

    @property
    def deployment_artifact(self) -> str:
        return "kovan-ovm" if self.network == KOVAN_NETWORK else "mainnet-ovm"

    def rpc_url(self) -> str:
        if self.rpc_url_override:
            return self.rpc_url_override
        return f"https://{self.network}.infura.io/v3/{self.api_key}"

    def validate(self) -> None:
        if not self.private_key:
            raise ConfigError("PRIVATE_KEY is required to sign execution transactions")
        if not self.rpc_url_override and not self.api_key:
            raise ConfigError("set RPC_URL or API_KEY to reach the network")


def load_settings(env_file: str | None = None) -> Settings:
    load_dotenv(os.path.expanduser(env_file or os.environ.get("KEEPER_ENV_FILE", ".env")))
    return Settings(
        network=os.environ.get("NETWORK", "optimism").strip().lower(),
        api_key=os.environ.get("API_KEY", "").strip(),
        rpc_url_override=os.environ.get("RPC_URL", "").strip(),
        private_key=os.environ.get("PRIVATE_KEY", "").strip(),
        deployments_dir=os.environ.get("DEPLOYMENTS_DIR", "node_modules/synthetix/publish/deployed"),
        dry_run=_env_bool("DRY_RUN", False),
        data_dir=os.environ.get("DATA_DIR", "./data"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper(),
        poll_interval=_env_float("POLL_INTERVAL", 2.0, min_value=0.2),
        tx_timeout=_env_float("TX_TIMEOUT", 120.0, min_value=1.0),
        status_enabled=_env_bool("STATUS_ENABLED", False),
        status_port=_env_int("STATUS_PORT", 8080, min_value=1),
    )
