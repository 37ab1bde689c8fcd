from __future__ import annotations

import logging

from nextprice_keeper.domain import MAX_FAILURES, DispatchFailed, DispatchOutcome, Order
from nextprice_keeper.infra import NullEventLogger
from nextprice_keeper.orders import OrderRegistry


class ExecutionDispatcher:
    """Executes ready orders, at most one outstanding attempt per account.

    The in-flight set is checked and filled before the first await, so the
    guard holds for any caller running on the same event loop.
    """

    def __init__(
        self,
        registry: OrderRegistry,
        *,
        max_failures: int = MAX_FAILURES,
        log: logging.Logger | None = None,
        events=None,
    ):
        self.registry = registry
        self.max_failures = max(1, int(max_failures))
        self.log = log or logging.getLogger("keeper.dispatch")
        self.events = events or NullEventLogger()
        self.in_flight: set[str] = set()
        self.executed = 0
        self.failed = 0

    async def attempt(self, order: Order) -> DispatchOutcome:
        account = order.account
        if account in self.in_flight:
            self.log.debug("attempt skipped, already in flight account=%s", account)
            return DispatchOutcome.SKIPPED

        self.in_flight.add(account)
        try:
            self.log.info("ATTEMPTING order account=%s target_round=%s", account, order.target_round_id)
            try:
                receipt = await order.market.execute_next_price_order(account)
            except DispatchFailed as exc:
                return self._failed(order, exc)

            self.registry.delete(account)
            self.executed += 1
            self.log.info(
                "SUCCESS order executed account=%s tx=%s block=%s",
                account,
                receipt.tx_hash,
                receipt.block_number,
            )
            self.events.emit(
                "order.executed",
                account=account,
                tx_hash=receipt.tx_hash,
                block=receipt.block_number,
                failures=order.failures,
            )
            return DispatchOutcome.EXECUTED
        finally:
            self.in_flight.discard(account)

    def _failed(self, order: Order, exc: DispatchFailed) -> DispatchOutcome:
        order.failures += 1
        self.failed += 1
        self.log.warning(
            "ERROR dispatch failed account=%s failures=%d/%d reason=%s",
            order.account,
            order.failures,
            self.max_failures,
            exc.reason,
        )
        self.events.emit(
            "order.dispatch_failed",
            account=order.account,
            failures=order.failures,
            reason=exc.reason,
        )
        if order.failures >= self.max_failures:
            self.registry.delete(order.account)
            self.log.warning("REMOVING order after max failed attempts account=%s", order.account)
            self.events.emit("order.discarded", account=order.account, failures=order.failures)
            return DispatchOutcome.DISCARDED
        return DispatchOutcome.RETRY
