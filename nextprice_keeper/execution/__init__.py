from .dispatcher import ExecutionDispatcher

__all__ = ["ExecutionDispatcher"]
