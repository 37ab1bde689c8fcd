from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    log = logging.getLogger(name)
    log.setLevel(str(level or "INFO").upper())
    if not any(getattr(h, "_keeper_handler", False) for h in log.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._keeper_handler = True  # type: ignore[attr-defined]
        log.addHandler(handler)
        log.propagate = False
    return log
