"""Reconciliation of installed packages against remote metadata."""

from .engine import ReconciliationEngine, is_debug_package, plan_updates

__all__ = [
    "ReconciliationEngine",
    "is_debug_package",
    "plan_updates",
]
