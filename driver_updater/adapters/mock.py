"""
Mock adapter — scripted stand-in for any adapter name.

Register one under ``http`` or ``shell`` and script per-action
responses (``nvme:remote-check`` → page text, ``nvme:local-check`` →
probe output) to drive the orchestrator without touching the host.
"""

from __future__ import annotations

import threading

from driver_updater.adapters.base import Adapter, ExecutionContext
from driver_updater.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    Returns success with ``default_output`` unless a response was set
    for the action id. Safe to call from several phase threads.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._call_log: list[ExecutionContext] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def called_ids(self) -> list[str]:
        """Action ids received, in call order."""
        with self._lock:
            return [ctx.action.id for ctx in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._responses[action_id] = receipt

    def set_output(self, action_id: str, output: str) -> None:
        """Script a successful response carrying ``output``."""
        self._responses[action_id] = Receipt.success(
            adapter=self._name,
            action_id=action_id,
            output=output,
        )

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        with self._lock:
            self._call_log.append(context)

        if context.action.id in self._responses:
            return self._responses[context.action.id].model_copy()

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        with self._lock:
            self._call_log.clear()
        self._responses.clear()
