from .log import get_logger
from .telemetry import NullEventLogger, RuntimeEventLogger

__all__ = ["get_logger", "NullEventLogger", "RuntimeEventLogger"]
