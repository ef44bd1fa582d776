"""
L1 Domain — Per-driver update decision and its table row (pure).
"""

from __future__ import annotations

from collections.abc import Iterable

from driver_updater.core.domain.eligibility import Eligibility
from driver_updater.core.domain.version import VersionString
from driver_updater.core.models.driver import Decision, DriverSpec, DriverState
from driver_updater.core.models.report import DisplayRow

DISPLAY_COMPONENTS = 3


def plan(
    eligibility: Eligibility,
    remote: VersionString | None,
    local: VersionString | None,
) -> Decision:
    """Decide whether a driver needs updating.

    Ineligible drivers are not applicable whatever their versions.
    Otherwise an update is required only when the installed version is
    strictly older than the published one.
    """
    if not eligibility.ok:
        return Decision.NOT_APPLICABLE
    if remote is None or local is None:
        raise ValueError("Eligible drivers need both versions to be planned")
    if local < remote:
        return Decision.UPDATE_REQUIRED
    return Decision.UP_TO_DATE


def apply_decision(state: DriverState, decision: Decision) -> None:
    """Write ``decision`` into the driver's own state slot."""
    state.decision = decision
    state.eligible = decision is not Decision.NOT_APPLICABLE
    state.needs_update = decision is Decision.UPDATE_REQUIRED


def any_update_needed(states: Iterable[DriverState]) -> bool:
    """True if any eligible, non-failed driver needs an update."""
    return any(
        s.needs_update and s.eligible and not s.failed
        for s in states
    )


def display_row(spec: DriverSpec, state: DriverState, host_class: str) -> DisplayRow:
    row = DisplayRow(driver_id=spec.id)

    if state.decision is Decision.NOT_APPLICABLE:
        row.note = f"not supported on {host_class} instance type"
        return row

    if state.installed is not None:
        row.installed = state.installed_display or state.installed.canonical(DISPLAY_COMPONENTS)
    if state.latest is not None:
        row.latest = str(state.latest)

    if state.error is not None:
        row.note = f"error: {state.error.error}"
    elif state.needs_update:
        row.note = "yes"
    else:
        row.note = "no"
    return row
