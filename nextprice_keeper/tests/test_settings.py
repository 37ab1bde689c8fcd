import pytest

from nextprice_keeper.config import load_settings
from nextprice_keeper.config.settings import Settings
from nextprice_keeper.domain import ConfigError


def _settings(**over) -> Settings:
    base = dict(
        network="optimism",
        api_key="abc",
        rpc_url_override="",
        private_key="0x" + "11" * 32,
        deployments_dir="deployed",
        dry_run=False,
        data_dir="/data",
        log_level="INFO",
        poll_interval=2.0,
        tx_timeout=120.0,
        status_enabled=False,
        status_port=8080,
    )
    base.update(over)
    return Settings(**base)


def test_infura_url_from_network() -> None:
    s = _settings(network="optimism-kovan")
    assert s.rpc_url() == "https://optimism-kovan.infura.io/v3/abc"
    assert s.deployment_artifact == "kovan-ovm"
    assert _settings().deployment_artifact == "mainnet-ovm"


def test_rpc_override_wins() -> None:
    assert _settings(rpc_url_override="http://localhost:8545").rpc_url() == "http://localhost:8545"


def test_validate_requires_key_and_endpoint() -> None:
    with pytest.raises(ConfigError):
        _settings(private_key="").validate()
    with pytest.raises(ConfigError):
        _settings(api_key="").validate()
    _settings().validate()


def test_load_settings_from_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("NETWORK", " Optimism-Kovan ")
    monkeypatch.setenv("DRY_RUN", "yes")
    monkeypatch.setenv("POLL_INTERVAL", "0.01")
    monkeypatch.setenv("STATUS_PORT", "9100")
    s = load_settings(str(tmp_path / "missing.env"))
    assert s.network == "optimism-kovan"
    assert s.dry_run is True
    assert s.poll_interval == 0.2
    assert s.status_port == 9100
