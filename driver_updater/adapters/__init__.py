"""Adapters — bindings for network, archive and shell capabilities.

Public re-exports for convenient access.
"""

from driver_updater.adapters.base import Adapter, ExecutionContext
from driver_updater.adapters.mock import MockAdapter
from driver_updater.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]
