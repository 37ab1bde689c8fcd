from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from nextprice_keeper.infra import NullEventLogger


@dataclass
class LoopHealth:
    name: str
    restarts: int = 0
    last_error: str = ""
    alive: bool = False


@dataclass
class RuntimeHealth:
    loops: dict[str, LoopHealth] = field(default_factory=dict)

    def touch(self, name: str, *, alive: bool | None = None, err: str = "") -> None:
        h = self.loops.get(name)
        if h is None:
            h = LoopHealth(name=name)
            self.loops[name] = h
        if alive is not None:
            h.alive = alive
        if err:
            h.last_error = err

    def restarted(self, name: str, err: Exception) -> None:
        self.touch(name, alive=False, err=str(err))
        self.loops[name].restarts += 1

    def summary(self) -> str:
        if not self.loops:
            return "loops=0"
        up = sum(1 for h in self.loops.values() if h.alive)
        total = len(self.loops)
        restarts = sum(int(h.restarts) for h in self.loops.values())
        return f"loops={up}/{total} restarts={restarts}"

    def as_dict(self) -> dict[str, dict]:
        return {
            name: {"alive": h.alive, "restarts": h.restarts, "last_error": h.last_error}
            for name, h in self.loops.items()
        }


class LoopSupervisor:
    """Restarts managed async loops after failure with bounded backoff."""

    def __init__(
        self,
        *,
        base_delay: float = 2.0,
        max_delay: float = 20.0,
        health: RuntimeHealth | None = None,
        events=None,
    ):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.health = health or RuntimeHealth()
        self.events = events or NullEventLogger()

    async def run_forever(self, name: str, fn: Callable[[], Awaitable[None]], log) -> None:
        delay = self.base_delay
        while True:
            try:
                self.health.touch(name, alive=True)
                await fn()
                self.health.touch(name, alive=False)
                log.warning("loop %s exited cleanly; restarting", name)
            except asyncio.CancelledError:
                self.health.touch(name, alive=False)
                raise
            except Exception as exc:
                self.health.restarted(name, exc)
                log.exception("loop %s crashed: %s", name, exc)
                self.events.emit("loop.crash", name=name, error=str(exc), restarts=self.health.loops[name].restarts)
            await asyncio.sleep(delay)
            delay = min(self.max_delay, max(self.base_delay, delay * 1.5))
