from __future__ import annotations

import asyncio
import logging

from nextprice_keeper.domain import NewBlock, UpstreamQueryFailed


class EventIngestor:
    """Polls for new blocks and forwards order logs plus a block tick to the scheduler.

    Logs for a block range are published in (block, log index) order across
    all markets, followed by a single NewBlock for the end of the range. The
    cursor only advances once the whole range was fetched.
    """

    def __init__(
        self,
        client,
        markets,
        scheduler,
        *,
        poll_interval: float = 2.0,
        max_block_range: int = 2000,
        log: logging.Logger | None = None,
    ):
        self.client = client
        self.markets = list(markets)
        self.scheduler = scheduler
        self.poll_interval = poll_interval
        self.max_block_range = max(1, int(max_block_range))
        self.log = log or logging.getLogger("keeper.ingest")
        self.cursor: int | None = None

    async def poll_once(self) -> int | None:
        head = await self.client.block_number()
        if self.cursor is None:
            self.cursor = head
            self.log.info("watching from block %s", head)
            return None
        if head <= self.cursor:
            return None

        from_block = self.cursor + 1
        to_block = min(head, self.cursor + self.max_block_range)
        found = []
        for market in self.markets:
            found.extend(await market.order_events(from_block, to_block))
        found.sort(key=lambda item: item[0])

        for _, msg in found:
            self.scheduler.publish(msg)
        self.cursor = to_block
        self.scheduler.publish(NewBlock(to_block))
        if found:
            self.log.debug("blocks %s-%s forwarded %d order events", from_block, to_block, len(found))
        return to_block

    async def run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except UpstreamQueryFailed as exc:
                self.log.warning("poll failed cursor=%s err=%s", self.cursor, exc)
            await asyncio.sleep(self.poll_interval)
