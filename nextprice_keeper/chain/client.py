from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from eth_account import Account
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from nextprice_keeper.chain.deployments import Deployment
from nextprice_keeper.config import Settings
from nextprice_keeper.domain import (
    DispatchFailed,
    ExecutionReceipt,
    Order,
    OrderRemoved,
    OrderSubmitted,
    UpstreamQueryFailed,
    decode_tracking_code,
)

EventKey = tuple[int, int]


def connect(settings: Settings, log: logging.Logger):
    """Return a connected Web3 and the signing account."""
    w3 = Web3(Web3.HTTPProvider(settings.rpc_url(), request_kwargs={"timeout": 10}))
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    head = w3.eth.block_number
    acct = Account.from_key(settings.private_key)
    log.info("rpc connected network=%s head=%s keeper=%s...", settings.network, head, acct.address[:10])
    return w3, acct


class ChainClient:
    """Moves blocking web3 calls off the event loop and owns tx signing."""

    def __init__(
        self,
        w3,
        account,
        *,
        tx_timeout: float = 120.0,
        dry_run: bool = False,
        log: logging.Logger | None = None,
    ):
        self.w3 = w3
        self.account = account
        self.tx_timeout = tx_timeout
        self.dry_run = dry_run
        self.log = log or logging.getLogger("keeper.chain")
        self._chain_id: int | None = None

    async def call(self, fn: Callable[[], Any]) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    async def query(self, what: str, fn: Callable[[], Any]) -> Any:
        try:
            return await self.call(fn)
        except Exception as exc:
            raise UpstreamQueryFailed(what, f"{type(exc).__name__}: {exc}") from exc

    async def block_number(self) -> int:
        return int(await self.query("block_number", lambda: self.w3.eth.block_number))

    async def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(await self.query("chain_id", lambda: self.w3.eth.chain_id))
        return self._chain_id

    def contract(self, address: str, abi: list):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def transact(self, account: str, fn) -> ExecutionReceipt:
        """Sign, send and confirm a contract call; any failure is a DispatchFailed.

        Dispatches are serialized, so the pending nonce is always the next free
        one. A send whose receipt timed out stays in the pending count and the
        retry queues behind it.
        """
        sender = self.account.address
        if self.dry_run:
            try:
                await self.call(lambda: fn.call({"from": sender}))
            except Exception as exc:
                raise DispatchFailed(account, f"simulation reverted: {type(exc).__name__}: {exc}") from exc
            self.log.info("dry-run: simulated execution ok account=%s", account)
            return ExecutionReceipt(tx_hash="dry-run", block_number=0)

        try:
            nonce = await self.call(lambda: self.w3.eth.get_transaction_count(sender, "pending"))
            chain_id = await self.chain_id()
            tx = await self.call(
                lambda: fn.build_transaction({"from": sender, "nonce": nonce, "chainId": chain_id})
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.call(lambda: self.w3.eth.send_raw_transaction(signed.raw_transaction))
            self.log.info("tx sent account=%s tx=%s", account, tx_hash.hex())
            receipt = await self.call(
                lambda: self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.tx_timeout)
            )
        except Exception as exc:
            raise DispatchFailed(account, f"{type(exc).__name__}: {exc}") from exc

        if receipt["status"] != 1:
            raise DispatchFailed(account, f"reverted tx={tx_hash.hex()} block={receipt['blockNumber']}")
        return ExecutionReceipt(
            tx_hash=tx_hash.hex(),
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt.get("gasUsed", 0) or 0),
        )

class FuturesMarket:
    """Handle on one FuturesMarket contract, shared by every order it emitted."""

    def __init__(self, client: ChainClient, contract, log: logging.Logger | None = None):
        self.client = client
        self.contract = contract
        self.address: str = contract.address
        self.log = log or logging.getLogger("keeper.market")

    def __repr__(self) -> str:
        return f"FuturesMarket({self.address})"

    async def base_asset(self) -> bytes:
        return await self.client.query(
            f"baseAsset({self.address})", self.contract.functions.baseAsset().call
        )

    async def execute_next_price_order(self, account: str) -> ExecutionReceipt:
        return await self.client.transact(account, self.contract.functions.executeNextPriceOrder(account))

    async def order_events(self, from_block: int, to_block: int) -> list[tuple[EventKey, Any]]:
        submitted = await self.client.query(
            f"NextPriceOrderSubmitted({self.address})",
            lambda: self.contract.events.NextPriceOrderSubmitted().get_logs(
                from_block=from_block, to_block=to_block
            ),
        )
        removed = await self.client.query(
            f"NextPriceOrderRemoved({self.address})",
            lambda: self.contract.events.NextPriceOrderRemoved().get_logs(
                from_block=from_block, to_block=to_block
            ),
        )
        out: list[tuple[EventKey, Any]] = []
        for ev in submitted:
            out.append((_event_key(ev), OrderSubmitted(self.order_from_event(ev["args"]))))
        for ev in removed:
            out.append((_event_key(ev), OrderRemoved(account=ev["args"]["account"], market_address=self.address)))
        return out

    def order_from_event(self, args) -> Order:
        return Order(
            account=args["account"],
            market=self,
            size_delta=str(args["sizeDelta"]),
            target_round_id=str(args["targetRoundId"]),
            commit_deposit=str(args["commitDeposit"]),
            keeper_deposit=str(args["keeperDeposit"]),
            tracking_code=self._tracking_code(args["trackingCode"]),
        )

    def _tracking_code(self, raw: bytes) -> str:
        try:
            return decode_tracking_code(raw)
        except ValueError as exc:
            self.log.warning("undecodable tracking code market=%s err=%s", self.address, exc)
            return "0x" + bytes(raw).hex()


class ExchangeRates:
    def __init__(self, client: ChainClient, contract):
        self.client = client
        self.contract = contract
        self.address: str = contract.address

    async def current_round_id(self, asset: bytes) -> int:
        value = await self.client.query(
            "getCurrentRoundId", lambda: self.contract.functions.getCurrentRoundId(asset).call()
        )
        return int(value)


async def discover_markets(client: ChainClient, deployment: Deployment, log: logging.Logger) -> list[FuturesMarket]:
    manager = client.contract(deployment.futures_market_manager_address, deployment.futures_market_manager_abi)
    addresses = await client.query("allMarkets", manager.functions.allMarkets().call)
    markets = [
        FuturesMarket(client, client.contract(addr, deployment.futures_market_abi), log=log)
        for addr in addresses
    ]
    for market in markets:
        log.info("%s next price event listeners set up.", market.address)
    return markets


def _event_key(ev) -> EventKey:
    return int(ev["blockNumber"]), int(ev["logIndex"])
