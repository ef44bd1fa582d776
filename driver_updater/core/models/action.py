"""
Action and Receipt models — the adapter contract.

Actions describe one call into an external capability (fetch a page,
run a probe, expand an archive). Receipts describe what happened.
Adapters return Receipts; they never raise.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A requested call into an adapter.

    Ids follow ``<driver>:<step>`` (e.g. ``nvme:remote-check``) so tests
    and mocks can script responses per driver and per step.
    """

    id: str
    adapter: str                    # which adapter handles this
    params: dict[str, Any] = Field(default_factory=dict)
    driver_id: str | None = None    # None = host-wide (metadata probe)


class Receipt(BaseModel):
    """Result of an adapter execution.

    ``output`` carries the payload: page text for HTTP GETs, combined
    stdout/stderr for shell commands, the written path for downloads
    and extractions.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )

