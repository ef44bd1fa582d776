"""
Update use case — the vertical slice behind ``check`` and ``install``.

Loads configuration, runs the preflight checks, identifies the host,
wires the adapter registry and hands everything to the orchestrator.
Startup problems come back as ``UpdateResult.error``; per-driver
problems come back inside the report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from driver_updater.adapters.registry import AdapterRegistry
from driver_updater.core.config.loader import ConfigError, find_config_file, load_config
from driver_updater.core.engine.orchestrator import (
    Orchestrator,
    PlanCallback,
    ProgressCallback,
)
from driver_updater.core.errors import HostDetectionError, PreflightError
from driver_updater.core.models.config import Settings, UpdaterConfig
from driver_updater.core.models.report import RunReport
from driver_updater.core.services.host import detect_instance_type, require_preflight

logger = logging.getLogger(__name__)


@dataclass
class UpdateResult:
    """Result of a check or install run."""

    report: RunReport | None = None
    config: UpdaterConfig | None = None
    config_path: Path | None = None
    host_class: str = ""
    install: bool = False
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error or self.report is None:
            return 1
        return self.report.exit_code

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            result["exit_code"] = self.exit_code
            return result

        result["config_path"] = str(self.config_path) if self.config_path else None
        result["host_class"] = self.host_class
        result["install"] = self.install
        if self.report:
            result["report"] = self.report.to_dict()
        result["exit_code"] = self.exit_code
        return result


def build_registry(settings: Settings) -> AdapterRegistry:
    """Registry with the real http, archive and shell adapters."""
    from driver_updater.adapters.archive.extract import ArchiveAdapter
    from driver_updater.adapters.network.http import HttpAdapter
    from driver_updater.adapters.shell.command import ShellCommandAdapter

    registry = AdapterRegistry(work_dir=settings.work_dir)
    registry.register(HttpAdapter())
    registry.register(ArchiveAdapter())
    registry.register(ShellCommandAdapter(executable=settings.probe_shell[0]))
    return registry


def run_update(
    config_path: Path | None = None,
    install: bool = False,
    instance_type: str | None = None,
    registry: AdapterRegistry | None = None,
    on_plan: PlanCallback | None = None,
    on_progress: ProgressCallback | None = None,
) -> UpdateResult:
    """Check for driver updates and, if ``install``, apply them.

    Args:
        config_path: Optional explicit path to drivers.yml.
        install: Whether installing is authorized.
        instance_type: Host class override; skips the metadata lookup.
        registry: Optional pre-configured adapter registry.
        on_plan: Called once with the comparison rows after the local check.
        on_progress: Called with (driver_id, stage) on every transition.
    """
    result = UpdateResult(install=install)

    # ── Load config ──────────────────────────────────────────────
    try:
        if config_path is None:
            config_path = find_config_file()
        config = load_config(config_path, search=False)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.config = config
    result.config_path = config_path
    settings = config.settings

    # ── Preflight ────────────────────────────────────────────────
    try:
        require_preflight(settings)
    except PreflightError as e:
        result.error = str(e)
        return result

    try:
        Path(settings.work_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        result.error = f"Cannot create work directory {settings.work_dir}: {e}"
        return result

    if registry is None:
        registry = build_registry(settings)

    # ── Identify host ────────────────────────────────────────────
    if instance_type:
        result.host_class = instance_type.strip().lower()
    else:
        try:
            result.host_class = detect_instance_type(
                registry,
                metadata_url=settings.metadata_url,
                timeout=settings.metadata_timeout,
            )
        except HostDetectionError as e:
            result.error = str(e)
            return result

    # ── Orchestrate ──────────────────────────────────────────────
    orchestrator = Orchestrator(registry, settings)
    result.report = orchestrator.run(
        config.drivers,
        host_class=result.host_class,
        install_authorized=install,
        on_plan=on_plan,
        on_progress=on_progress,
    )

    if result.report.failures:
        logger.warning(
            "%d driver(s) failed: %s",
            len(result.report.failures),
            ", ".join(f.driver_id for f in result.report.failures),
        )
    return result
