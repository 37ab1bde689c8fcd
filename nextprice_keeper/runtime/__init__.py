from .ingest import EventIngestor
from .scheduler import BlockScheduler, PassReport
from .supervisor import LoopSupervisor, RuntimeHealth

__all__ = ["EventIngestor", "BlockScheduler", "PassReport", "LoopSupervisor", "RuntimeHealth"]
