"""
Run report — what the orchestrator hands back to its caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from driver_updater.core.models.driver import DriverFailure


@dataclass
class DisplayRow:
    """One line of the comparison table."""

    driver_id: str
    installed: str = "none"
    latest: str = "none"
    note: str = ""

    def to_dict(self) -> dict:
        return {
            "driver_id": self.driver_id,
            "installed": self.installed,
            "latest": self.latest,
            "note": self.note,
        }


@dataclass
class RunReport:
    host_class: str = ""
    rows: list[DisplayRow] = field(default_factory=list)
    any_update_needed: bool = False
    proceeded: bool = False
    halt_reason: str = ""           # up-to-date | not-authorized | "" when proceeded
    installed: list[str] = field(default_factory=list)
    failures: list[DriverFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def failure_for(self, driver_id: str) -> DriverFailure | None:
        for failure in self.failures:
            if failure.driver_id == driver_id:
                return failure
        return None

    def to_dict(self) -> dict:
        return {
            "host_class": self.host_class,
            "rows": [r.to_dict() for r in self.rows],
            "any_update_needed": self.any_update_needed,
            "proceeded": self.proceeded,
            "halt_reason": self.halt_reason,
            "installed": list(self.installed),
            "failures": [f.to_dict() for f in self.failures],
            "warnings": list(self.warnings),
            "exit_code": self.exit_code,
        }
