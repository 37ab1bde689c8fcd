from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any


class RuntimeEventLogger:
    """Append-only JSONL trail of order lifecycle transitions.

    Only called from the event loop thread; rows are written whole so a
    crash leaves at most one truncated trailing line.
    """

    def __init__(self, data_dir: str, filename: str = "runtime_events.jsonl"):
        self.path = Path(data_dir) / filename
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event: str, **fields: Any) -> None:
        row = json.dumps({"ts": time.time(), "event": event, **fields}, separators=(",", ":"), default=str)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(row + "\n")


class NullEventLogger:
    def emit(self, event: str, **fields: Any) -> None:
        return None
