from __future__ import annotations

from nextprice_keeper.domain import Order


class OrderRegistry:
    """In-memory, submission-ordered collection of pending orders keyed by account."""

    def __init__(self):
        self._orders: list[Order] = []

    def insert(self, order: Order) -> bool:
        """Track `order`; returns True when it replaced an entry for the same account.

        A replacement keeps the first submission position so the order is
        still visited where the account first queued.
        """
        for idx, existing in enumerate(self._orders):
            if existing.account == order.account:
                self._orders[idx] = order
                return True
        self._orders.append(order)
        return False

    def delete(self, account: str) -> Order | None:
        for idx, existing in enumerate(self._orders):
            if existing.account == account:
                return self._orders.pop(idx)
        return None

    def get(self, account: str) -> Order | None:
        for existing in self._orders:
            if existing.account == account:
                return existing
        return None

    def snapshot(self) -> list[Order]:
        return list(self._orders)

    def accounts(self) -> list[str]:
        return [o.account for o in self._orders]

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, account: object) -> bool:
        return any(o.account == account for o in self._orders)
