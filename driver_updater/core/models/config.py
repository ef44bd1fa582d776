"""
Updater configuration — settings plus the driver table.

Loaded from drivers.yml by the config loader, or built from the
default table when no file exists.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from driver_updater.core.domain.workspace import name_conflicts
from driver_updater.core.models.driver import DriverSpec

DEFAULT_METADATA_URL = "http://169.254.169.254/latest/meta-data/instance-type"


class Settings(BaseModel):
    """Run-wide knobs. Timeouts are in seconds."""

    work_dir: str = "."
    remote_timeout: float = Field(default=5.0, gt=0, le=5.0)
    metadata_timeout: float = Field(default=2.0, gt=0)
    probe_timeout: float = Field(default=60.0, gt=0)
    download_timeout: float = Field(default=300.0, gt=0)
    install_timeout: float = Field(default=1800.0, gt=0)
    probe_shell: list[str] = Field(
        default_factory=lambda: ["powershell.exe", "-NoProfile", "-Command"]
    )
    max_workers: int = Field(default=8, ge=1)
    metadata_url: str = DEFAULT_METADATA_URL
    require_windows: bool = True
    require_admin: bool = True

    @field_validator("probe_shell")
    @classmethod
    def _shell_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("probe_shell must name an executable")
        return value


class UpdaterConfig(BaseModel):
    settings: Settings = Field(default_factory=Settings)
    drivers: list[DriverSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> UpdaterConfig:
        seen: set[str] = set()
        for spec in self.drivers:
            if spec.id in seen:
                raise ValueError(f"Duplicate driver id: {spec.id!r}")
            seen.add(spec.id)
        return self

    @model_validator(mode="after")
    def _distinct_work_dir_names(self) -> UpdaterConfig:
        problems = name_conflicts((spec.id, spec.file_name) for spec in self.drivers)
        if problems:
            raise ValueError("; ".join(problems))
        return self

    def get_driver(self, driver_id: str) -> DriverSpec | None:
        for spec in self.drivers:
            if spec.id == driver_id:
                return spec
        return None
