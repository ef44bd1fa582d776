"""
L1 Domain — Host eligibility rules (pure).

Some drivers only make sense on some instance types: ENA is not
supported on c4/d2/t2 or the smaller m4 sizes, NVMe only exists on
Nitro instances. Drivers that do not apply are skipped, not failed.
"""

from __future__ import annotations

from enum import Enum

from driver_updater.core.models.driver import DriverSpec, EligibilityRule


class Eligibility(str, Enum):
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"

    @property
    def ok(self) -> bool:
        return self is Eligibility.ELIGIBLE


def host_family(host_class: str) -> str:
    """``"m5.large"`` → ``"m5"``."""
    return normalize_host_class(host_class).split(".", 1)[0]


def normalize_host_class(host_class: str) -> str:
    return (host_class or "").strip().lower()


def evaluate(rule: EligibilityRule | None, host_class: str) -> Eligibility:
    """Apply ``rule`` to ``host_class``.

    No rule means the driver applies everywhere. A deny rule lets
    unknown classes through; an allow rule rejects them.
    """
    if rule is None:
        return Eligibility.ELIGIBLE

    cls = normalize_host_class(host_class)
    listed = cls in rule.classes or host_family(cls) in rule.prefixes

    if rule.policy == "allow":
        return Eligibility.ELIGIBLE if listed else Eligibility.INELIGIBLE
    return Eligibility.INELIGIBLE if listed else Eligibility.ELIGIBLE


def evaluate_driver(spec: DriverSpec, host_class: str) -> Eligibility:
    return evaluate(spec.eligibility, host_class)
