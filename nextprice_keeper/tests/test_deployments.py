import json

import pytest

from nextprice_keeper.chain import load_deployment
from nextprice_keeper.domain import DeploymentError

DOC = {
    "targets": {
        "FuturesMarketManager": {"address": "0x00000000000000000000000000000000000000aa"},
        "ExchangeRates": {"address": "0x00000000000000000000000000000000000000bb"},
    },
    "sources": {
        "FuturesMarket": {"abi": [{"name": "executeNextPriceOrder", "type": "function"}]},
        "FuturesMarketManager": {"abi": [{"name": "allMarkets", "type": "function"}]},
        "ExchangeRates": {"abi": [{"name": "getCurrentRoundId", "type": "function"}]},
    },
}


def _write(tmp_path, artifact, doc):
    d = tmp_path / artifact
    d.mkdir()
    (d / "deployment.json").write_text(json.dumps(doc))


def test_load_deployment(tmp_path) -> None:
    _write(tmp_path, "mainnet-ovm", DOC)
    dep = load_deployment("mainnet-ovm", str(tmp_path))
    assert dep.exchange_rates_address.endswith("bb")
    assert dep.futures_market_abi[0]["name"] == "executeNextPriceOrder"


def test_missing_artifact(tmp_path) -> None:
    with pytest.raises(DeploymentError):
        load_deployment("kovan-ovm", str(tmp_path))


def test_missing_key(tmp_path) -> None:
    doc = {"targets": DOC["targets"], "sources": {"FuturesMarket": DOC["sources"]["FuturesMarket"]}}
    _write(tmp_path, "mainnet-ovm", doc)
    with pytest.raises(DeploymentError, match="FuturesMarketManager"):
        load_deployment("mainnet-ovm", str(tmp_path))
