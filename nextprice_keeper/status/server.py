from __future__ import annotations

import asyncio
from typing import Any, Callable

from aiohttp import web

from nextprice_keeper.infra import get_logger


def build_status_app(status_fn: Callable[[], dict[str, Any]]) -> web.Application:
    async def handle_api(_req: web.Request) -> web.Response:
        return web.json_response(status_fn(), headers={"Cache-Control": "no-store"})

    async def handle_health(_req: web.Request) -> web.Response:
        return web.Response(text="ok")

    app = web.Application()
    app.router.add_get("/api", handle_api)
    app.router.add_get("/healthz", handle_health)
    return app


async def run_status_server(status_fn: Callable[[], dict[str, Any]], *, port: int, log_level: str = "INFO") -> None:
    log = get_logger("keeper.status", log_level)
    runner = web.AppRunner(build_status_app(status_fn))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    log.info("status endpoint running on :%s", port)
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await runner.cleanup()
