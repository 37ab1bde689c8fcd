from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Union

from nextprice_keeper.domain import (
    MAX_FAILURES,
    STALE_ROUNDS,
    DispatchOutcome,
    NewBlock,
    OrderRemoved,
    OrderSubmitted,
    UpstreamQueryFailed,
    Verdict,
)
from nextprice_keeper.execution import ExecutionDispatcher
from nextprice_keeper.infra import NullEventLogger
from nextprice_keeper.orders import OrderRegistry, classify

Message = Union[OrderSubmitted, OrderRemoved, NewBlock]


@dataclass
class PassReport:
    block: int
    checked: int = 0
    pending: int = 0
    ready: int = 0
    stale: int = 0
    executed: int = 0
    retried: int = 0
    discarded: int = 0
    skipped: int = 0


class BlockScheduler:
    """Single consumer of order events and block ticks.

    Every message is handled to completion before the next one is taken off
    the channel, so evaluation passes never overlap and registry mutations
    from the event stream land strictly between passes. At most one block
    tick waits in the channel: later ticks only move its block number
    forward, so a slow pass cannot build a backlog of passes in front of
    order events.
    """

    def __init__(
        self,
        rates,
        *,
        registry: OrderRegistry | None = None,
        dispatcher: ExecutionDispatcher | None = None,
        stale_rounds: int = STALE_ROUNDS,
        max_failures: int = MAX_FAILURES,
        log: logging.Logger | None = None,
        dispatch_log: logging.Logger | None = None,
        events=None,
    ):
        self.rates = rates
        self.log = log or logging.getLogger("keeper.scheduler")
        self.events = events or NullEventLogger()
        self.registry = registry if registry is not None else OrderRegistry()
        self.dispatcher = dispatcher or ExecutionDispatcher(
            self.registry,
            max_failures=max_failures,
            log=dispatch_log,
            events=self.events,
        )
        self.stale_rounds = stale_rounds
        self.queue: asyncio.Queue[Message] = asyncio.Queue()
        self.passes = 0
        self.last_block: int | None = None
        self.last_report: PassReport | None = None
        self.coalesced = 0
        self._queued_block: int | None = None

    def publish(self, msg: Message) -> None:
        if isinstance(msg, NewBlock):
            if self._queued_block is not None:
                self._queued_block = max(self._queued_block, msg.number)
                self.coalesced += 1
                return
            self._queued_block = msg.number
        self.queue.put_nowait(msg)

    def _take(self, msg: Message) -> Message:
        if isinstance(msg, NewBlock) and self._queued_block is not None:
            msg = NewBlock(max(msg.number, self._queued_block))
            self._queued_block = None
        return msg

    async def run(self) -> None:
        while True:
            msg = self._take(await self.queue.get())
            try:
                await self.handle(msg)
            finally:
                self.queue.task_done()

    async def drain(self) -> None:
        """Handle every message already queued, then return."""
        while not self.queue.empty():
            msg = self._take(self.queue.get_nowait())
            try:
                await self.handle(msg)
            finally:
                self.queue.task_done()

    async def handle(self, msg: Message) -> PassReport | None:
        if isinstance(msg, NewBlock):
            return await self.evaluate_pass(msg.number)
        if isinstance(msg, OrderSubmitted):
            self._on_submitted(msg)
        elif isinstance(msg, OrderRemoved):
            self._on_removed(msg)
        else:
            raise TypeError(f"unsupported scheduler message: {type(msg).__name__}")
        return None

    def _on_submitted(self, msg: OrderSubmitted) -> None:
        order = msg.order
        replaced = self.registry.insert(order)
        if replaced:
            self.log.warning("order replaced for account=%s (duplicate submission)", order.account)
            self.events.emit("order.replaced", **order.describe())
            return
        self.log.info("Order received for: %s from %s", order.account, order.tracking_code)
        self.events.emit("order.received", **order.describe())

    def _on_removed(self, msg: OrderRemoved) -> None:
        removed = self.registry.delete(msg.account)
        self.log.info("Order removed for: %s tracked=%s", msg.account, removed is not None)
        self.events.emit("order.removed", account=msg.account, tracked=removed is not None)

    async def evaluate_pass(self, block: int) -> PassReport:
        report = PassReport(block=block)
        for order in self.registry.snapshot():
            # Removed or replaced since the snapshot was taken.
            if self.registry.get(order.account) is not order:
                continue
            report.checked += 1
            try:
                asset = await order.market.base_asset()
                current = await self.rates.current_round_id(asset)
            except UpstreamQueryFailed as exc:
                report.skipped += 1
                self.log.warning("%s skipping order for: %s err=%s", block, order.account, exc)
                self.events.emit("order.skipped_upstream", account=order.account, block=block, error=str(exc))
                continue

            verdict = classify(current, order.target_round_id, stale_rounds=self.stale_rounds)
            self.log.info(
                "%s Checking order for: %s Rounds until target round: %s",
                block,
                order.account,
                order.target_round - int(current),
            )
            if verdict is Verdict.STALE:
                report.stale += 1
                self.registry.delete(order.account)
                self.log.info("Order stale: %s round=%s target=%s", order.account, current, order.target_round_id)
                self.events.emit(
                    "order.stale",
                    account=order.account,
                    current_round=str(current),
                    target_round_id=order.target_round_id,
                )
            elif verdict is Verdict.READY:
                report.ready += 1
                outcome = await self.dispatcher.attempt(order)
                self._tally(report, outcome)
            else:
                report.pending += 1

        self.passes += 1
        self.last_block = block
        self.last_report = report
        if report.checked:
            self.events.emit("pass.done", **asdict(report))
        else:
            self.log.debug("%s pass done, no orders", block)
        return report

    @staticmethod
    def _tally(report: PassReport, outcome: DispatchOutcome) -> None:
        if outcome is DispatchOutcome.EXECUTED:
            report.executed += 1
        elif outcome is DispatchOutcome.RETRY:
            report.retried += 1
        elif outcome is DispatchOutcome.DISCARDED:
            report.discarded += 1

    def status(self) -> dict[str, Any]:
        return {
            "orders": [o.describe() for o in self.registry.snapshot()],
            "in_flight": sorted(self.dispatcher.in_flight),
            "queued": self.queue.qsize(),
            "passes": self.passes,
            "coalesced_ticks": self.coalesced,
            "last_block": self.last_block,
            "last_pass": asdict(self.last_report) if self.last_report else None,
            "executed": self.dispatcher.executed,
            "failed": self.dispatcher.failed,
        }
