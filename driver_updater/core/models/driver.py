"""
Driver models — static driver descriptions and per-run scratch state.

``DriverSpec`` is loaded once from the driver table and never changes.
``DriverState`` is the orchestrator's per-driver slot for one run; each
slot is written only by the task that owns its index.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from driver_updater.core.domain.version import VersionString
from driver_updater.core.domain.workspace import is_archive, strip_archive_suffix


class EligibilityRule(BaseModel):
    """Which host classes a driver applies to.

    ``deny`` lists the unsupported classes and families; anything else
    is eligible. ``allow`` lists the only supported ones; anything else,
    unknown classes included, is ineligible.
    """

    model_config = ConfigDict(frozen=True)

    policy: Literal["allow", "deny"]
    classes: tuple[str, ...] = ()   # exact host classes, e.g. m4.large
    prefixes: tuple[str, ...] = ()  # families, e.g. c4 (text before the first '.')

    @field_validator("classes", "prefixes", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return tuple(str(v).strip().lower() for v in value)
        return value


class DriverSpec(BaseModel):
    """Static description of one updatable driver."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    download_url: str
    probe_command: str
    install_command: str
    version_url: str
    version_pattern: str
    eligibility: EligibilityRule | None = None

    @field_validator("version_pattern")
    @classmethod
    def _pattern_compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid version_pattern {value!r}: {e}") from e
        return value

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def file_name(self) -> str:
        """Download target: the final path segment of the URL."""
        path = self.download_url.split("?", 1)[0].split("#", 1)[0]
        return path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def extract_dir_name(self) -> str | None:
        """Extraction directory name; None when the download is not an archive."""
        if not is_archive(self.file_name):
            return None
        return strip_archive_suffix(self.file_name)


class Decision(str, Enum):
    NOT_APPLICABLE = "not-applicable"
    UP_TO_DATE = "up-to-date"
    UPDATE_REQUIRED = "update-required"


class UpdateStage(str, Enum):
    QUEUED = "queued"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    INSTALLING = "installing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class DriverFailure:
    """One driver's failure, as it appears in the run report."""

    driver_id: str
    stage: str
    error: str
    kind: str = ""

    def to_dict(self) -> dict:
        return {
            "driver_id": self.driver_id,
            "stage": self.stage,
            "error": self.error,
            "kind": self.kind,
        }


@dataclass
class DriverState:
    """Mutable per-run data for one driver."""

    latest: VersionString | None = None
    installed: VersionString | None = None
    installed_display: str = ""
    needs_update: bool | None = None    # None = not yet determined
    eligible: bool | None = None
    decision: Decision | None = None
    stage: UpdateStage = UpdateStage.QUEUED
    error: DriverFailure | None = None
    remote_error: DriverFailure | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None
