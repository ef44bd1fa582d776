"""
Adapter registry — central dispatch for all adapter operations.

Resolvers and the update executor never hold adapters directly; they
build an Action and hand it to the registry, which looks up the
adapter, validates, executes and stamps timing on the receipt.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from driver_updater.adapters.base import Adapter, ExecutionContext
from driver_updater.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Registry and dispatcher for adapters.

    Registration happens once at startup; after that the registry is
    only read, so concurrent ``execute_action`` calls from phase worker
    threads are safe.
    """

    def __init__(self, work_dir: str = "."):
        self._adapters: dict[str, Adapter] = {}
        self._work_dir = work_dir

    @property
    def work_dir(self) -> str:
        return self._work_dir

    def register(self, adapter: Adapter) -> None:
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters.keys())

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability of every registered adapter (used by ``doctor``)."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return status

    def execute_action(self, action: Action) -> Receipt:
        """Execute an action through the appropriate adapter.

        Resolves the adapter, builds the context, validates, executes
        and returns a Receipt. Never raises.
        """
        start_time = time.monotonic()

        context = ExecutionContext(
            action=action,
            work_dir=self._work_dir,
            params=action.params,
        )

        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        try:
            is_valid, error_msg = adapter.validate(context)
            if not is_valid:
                return Receipt.failure(
                    adapter=action.adapter,
                    action_id=action.id,
                    error=f"Validation failed: {error_msg}",
                )
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug(
            "%s %s → %s (%dms)",
            action.adapter,
            action.id,
            receipt.status,
            receipt.duration_ms,
        )
        return receipt
