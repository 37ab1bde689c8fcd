import asyncio
from types import SimpleNamespace

import pytest

from nextprice_keeper.chain import ChainClient, ExchangeRates, FuturesMarket
from nextprice_keeper.domain import DispatchFailed, UpstreamQueryFailed


class FakeEth:
    def __init__(self, status=1):
        self.status = status
        self.nonce = 7
        self.chain_id = 10
        self.block_number = 123
        self.sent = []

    def get_transaction_count(self, address, block):
        return self.nonce

    def send_raw_transaction(self, raw):
        self.sent.append(raw)
        return bytes.fromhex("ab" * 32)

    def wait_for_transaction_receipt(self, tx_hash, timeout):
        return {"status": self.status, "blockNumber": 456, "gasUsed": 21000}


class FakeAccount:
    address = "0x000000000000000000000000000000000000bEEF"

    def sign_transaction(self, tx):
        return SimpleNamespace(raw_transaction=b"signed:" + str(tx["nonce"]).encode())


class FakeCall:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.built = []

    def call(self, tx=None):
        if self.error:
            raise self.error
        return self.result

    def build_transaction(self, tx):
        if self.error:
            raise self.error
        self.built.append(tx)
        return dict(tx)


def _client(status=1, dry_run=False):
    eth = FakeEth(status=status)
    return ChainClient(SimpleNamespace(eth=eth), FakeAccount(), dry_run=dry_run), eth


def test_transact_confirms_receipt() -> None:
    client, eth = _client()
    fn = FakeCall()
    receipt = asyncio.run(client.transact("0xA", fn))
    assert receipt.block_number == 456
    assert receipt.gas_used == 21000
    assert fn.built[0]["nonce"] == 7 and fn.built[0]["chainId"] == 10
    assert eth.sent == [b"signed:7"]


def test_reverted_receipt_is_dispatch_failure() -> None:
    client, _ = _client(status=0)
    with pytest.raises(DispatchFailed, match="reverted"):
        asyncio.run(client.transact("0xA", FakeCall()))


def test_estimate_error_is_dispatch_failure() -> None:
    client, eth = _client()
    with pytest.raises(DispatchFailed) as info:
        asyncio.run(client.transact("0xA", FakeCall(error=ValueError("execution reverted: price too old"))))
    assert info.value.account == "0xA"
    assert eth.sent == []


def test_dry_run_simulates_only() -> None:
    client, eth = _client(dry_run=True)
    receipt = asyncio.run(client.transact("0xA", FakeCall()))
    assert receipt.tx_hash == "dry-run"
    assert eth.sent == []
    with pytest.raises(DispatchFailed, match="simulation reverted"):
        asyncio.run(client.transact("0xA", FakeCall(error=ValueError("no order"))))


class FakeFunctions:
    def __init__(self, rounds):
        self.rounds = rounds

    def getCurrentRoundId(self, asset):
        value = self.rounds.get(asset)
        if value is None:
            return FakeCall(error=ConnectionError("rpc down"))
        return FakeCall(result=value)


def test_exchange_rates_round_and_failure() -> None:
    client, _ = _client()
    contract = SimpleNamespace(address="0xRates", functions=FakeFunctions({b"sETH": 2**70 + 3}))
    rates = ExchangeRates(client, contract)
    assert asyncio.run(rates.current_round_id(b"sETH")) == 2**70 + 3
    with pytest.raises(UpstreamQueryFailed):
        asyncio.run(rates.current_round_id(b"sBTC"))


def test_order_from_submitted_event() -> None:
    client, _ = _client()
    market = FuturesMarket(client, SimpleNamespace(address="0xMarket"))
    order = market.order_from_event(
        {
            "account": "0xA",
            "sizeDelta": -(10**21),
            "targetRoundId": 18446744073709551699,
            "commitDeposit": 0,
            "keeperDeposit": 2 * 10**18,
            "trackingCode": b"KWENTA".ljust(32, b"\x00"),
        }
    )
    assert order.market is market
    assert order.size_delta == "-1000000000000000000000"
    assert order.target_round_id == "18446744073709551699"
    assert order.tracking_code == "KWENTA"
    assert order.failures == 0


def test_undecodable_tracking_code_kept_as_hex() -> None:
    client, _ = _client()
    market = FuturesMarket(client, SimpleNamespace(address="0xMarket"))
    assert market._tracking_code(b"\xff" * 32) == "0x" + "ff" * 32


def test_nonce_read_from_pending_each_send() -> None:
    client, eth = _client()
    seen = []
    original = eth.get_transaction_count

    def counting(address, block):
        seen.append((address, block))
        return original(address, block)

    eth.get_transaction_count = counting
    asyncio.run(client.transact("0xA", FakeCall()))
    eth.nonce = 8
    fn = FakeCall()
    asyncio.run(client.transact("0xB", fn))
    assert seen == [(FakeAccount.address, "pending")] * 2
    assert fn.built[0]["nonce"] == 8
