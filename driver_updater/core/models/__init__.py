"""
Domain models — pydantic types and run-state dataclasses.

    from driver_updater.core.models import DriverSpec, DriverState, Receipt
"""

from driver_updater.core.models.action import Action, Receipt
from driver_updater.core.models.config import Settings, UpdaterConfig
from driver_updater.core.models.driver import (
    Decision,
    DriverFailure,
    DriverSpec,
    DriverState,
    EligibilityRule,
    UpdateStage,
)
from driver_updater.core.models.report import DisplayRow, RunReport

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # config.py
    "Settings",
    "UpdaterConfig",
    # driver.py
    "Decision",
    "DriverFailure",
    "DriverSpec",
    "DriverState",
    "EligibilityRule",
    "UpdateStage",
    # report.py
    "DisplayRow",
    "RunReport",
]
