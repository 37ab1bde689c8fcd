from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from nextprice_keeper.domain import DeploymentError


@dataclass(frozen=True)
class Deployment:
    artifact: str
    futures_market_abi: list[dict[str, Any]]
    futures_market_manager_address: str
    futures_market_manager_abi: list[dict[str, Any]]
    exchange_rates_address: str
    exchange_rates_abi: list[dict[str, Any]]


def _lookup(doc: dict, *path: str) -> Any:
    node: Any = doc
    for key in path:
        if not isinstance(node, dict) or key not in node:
            raise DeploymentError(f"deployment artifact missing {'.'.join(path)}")
        node = node[key]
    return node


def parse_deployment(doc: dict, artifact: str = "") -> Deployment:
    return Deployment(
        artifact=artifact,
        futures_market_abi=_lookup(doc, "sources", "FuturesMarket", "abi"),
        futures_market_manager_address=_lookup(doc, "targets", "FuturesMarketManager", "address"),
        futures_market_manager_abi=_lookup(doc, "sources", "FuturesMarketManager", "abi"),
        exchange_rates_address=_lookup(doc, "targets", "ExchangeRates", "address"),
        exchange_rates_abi=_lookup(doc, "sources", "ExchangeRates", "abi"),
    )


def load_deployment(artifact: str, deployments_dir: str) -> Deployment:
    """Read `<deployments_dir>/<artifact>/deployment.json` published by synthetix."""
    path = Path(deployments_dir).expanduser() / artifact / "deployment.json"
    if not path.exists():
        raise DeploymentError(f"deployment artifact not found: {path}")
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DeploymentError(f"deployment artifact is not valid json: {path}: {exc}") from exc
    return parse_deployment(doc, artifact)
