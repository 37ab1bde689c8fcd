from __future__ import annotations

import asyncio

from nextprice_keeper.chain import ChainClient, ExchangeRates, connect, discover_markets, load_deployment
from nextprice_keeper.config import Settings
from nextprice_keeper.infra import RuntimeEventLogger, get_logger
from nextprice_keeper.runtime.ingest import EventIngestor
from nextprice_keeper.runtime.scheduler import BlockScheduler
from nextprice_keeper.runtime.supervisor import LoopSupervisor, RuntimeHealth
from nextprice_keeper.status import run_status_server


class App:
    """Wires deployments, RPC, ingestor and scheduler and keeps them running."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.log = get_logger("keeper", settings.log_level)
        self.events = RuntimeEventLogger(settings.data_dir)
        self.health = RuntimeHealth()
        self.supervisor = LoopSupervisor(health=self.health, events=self.events)

    async def _health_loop(self, scheduler: BlockScheduler) -> None:
        while True:
            self.log.info(
                "runtime-health %s orders=%d in_flight=%d last_block=%s",
                self.health.summary(),
                len(scheduler.registry),
                len(scheduler.dispatcher.in_flight),
                scheduler.last_block,
            )
            await asyncio.sleep(30.0)

    async def build(self) -> tuple[BlockScheduler, EventIngestor]:
        s = self.settings
        s.validate()
        deployment = load_deployment(s.deployment_artifact, s.deployments_dir)
        loop = asyncio.get_running_loop()
        w3, acct = await loop.run_in_executor(None, lambda: connect(s, self.log))

        client = ChainClient(
            w3,
            acct,
            tx_timeout=s.tx_timeout,
            dry_run=s.dry_run,
            log=get_logger("keeper.chain", s.log_level),
        )
        markets = await discover_markets(client, deployment, get_logger("keeper.market", s.log_level))
        rates = ExchangeRates(
            client, client.contract(deployment.exchange_rates_address, deployment.exchange_rates_abi)
        )
        scheduler = BlockScheduler(
            rates,
            log=get_logger("keeper.scheduler", s.log_level),
            dispatch_log=get_logger("keeper.dispatch", s.log_level),
            events=self.events,
        )
        ingestor = EventIngestor(
            client,
            markets,
            scheduler,
            poll_interval=s.poll_interval,
            log=get_logger("keeper.ingest", s.log_level),
        )
        return scheduler, ingestor

    async def run(self) -> None:
        self.log.info(
            "starting keeper network=%s dry_run=%s artifact=%s",
            self.settings.network,
            self.settings.dry_run,
            self.settings.deployment_artifact,
        )
        scheduler, ingestor = await self.build()

        def status() -> dict:
            return {**scheduler.status(), "loops": self.health.as_dict()}

        tasks = [
            asyncio.create_task(self.supervisor.run_forever("scheduler", scheduler.run, self.log), name="loop:scheduler"),
            asyncio.create_task(self.supervisor.run_forever("ingest", ingestor.run, self.log), name="loop:ingest"),
            asyncio.create_task(self._health_loop(scheduler), name="runtime-health"),
        ]
        if self.settings.status_enabled:
            tasks.append(
                asyncio.create_task(
                    run_status_server(status, port=self.settings.status_port, log_level=self.settings.log_level),
                    name="status",
                )
            )
        await asyncio.gather(*tasks)


def run_main(settings: Settings) -> None:
    asyncio.run(App(settings).run())
