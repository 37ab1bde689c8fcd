from .readiness import classify
from .registry import OrderRegistry

__all__ = ["OrderRegistry", "classify"]
