"""
Orchestrator — drives every driver through the update pipeline.

Phases, each joined before the next starts:

    1. remote-check   concurrent   newest published version
    2. local-check    concurrent   eligibility, installed version, decision
       ── gate: stop unless an update is needed and install is authorized
    3. download       concurrent   needs-update drivers
    4. extract        concurrent   drivers whose own download succeeded
    5. install        sequential   driver-table order
    6. cleanup        sequential   every needs-update driver, best-effort

Per-driver state lives in a list indexed like the driver table. A task
only ever writes the slot at its own index and the join at the end of
each phase publishes those writes, so no lock is needed.

Full joins between phases keep runs deterministic; a driver could in
principle start extracting as soon as its own download finishes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from driver_updater.adapters.registry import AdapterRegistry
from driver_updater.core.domain.eligibility import evaluate_driver
from driver_updater.core.domain.planner import (
    any_update_needed,
    apply_decision,
    display_row,
    plan,
)
from driver_updater.core.domain.workspace import name_conflicts
from driver_updater.core.engine.executor import UpdateExecutor
from driver_updater.core.errors import CleanupError, UpdaterError
from driver_updater.core.models.config import Settings
from driver_updater.core.models.driver import (
    Decision,
    DriverFailure,
    DriverSpec,
    DriverState,
    UpdateStage,
)
from driver_updater.core.models.report import DisplayRow, RunReport
from driver_updater.core.services.local_version import fetch_installed
from driver_updater.core.services.remote_version import fetch_latest

logger = logging.getLogger(__name__)

PlanCallback = Callable[[list[DisplayRow]], None]
ProgressCallback = Callable[[str, str], None]


def _failure(spec: DriverSpec, stage: str, exc: BaseException) -> DriverFailure:
    return DriverFailure(
        driver_id=spec.id,
        stage=stage,
        error=str(exc) or exc.__class__.__name__,
        kind=exc.__class__.__name__,
    )


class Orchestrator:
    """Runs the phase pipeline over an arbitrary list of drivers."""

    def __init__(
        self,
        registry: AdapterRegistry,
        settings: Settings | None = None,
        executor: UpdateExecutor | None = None,
    ):
        self.registry = registry
        self.settings = settings or Settings()
        self.executor = executor or UpdateExecutor(registry, self.settings)

        self._specs: list[DriverSpec] = []
        self._states: list[DriverState] = []
        self._host_class = ""
        self._on_progress: ProgressCallback | None = None

    @property
    def states(self) -> list[DriverState]:
        """State slots of the last run, in driver-table order."""
        return self._states

    def run(
        self,
        specs: Sequence[DriverSpec],
        host_class: str,
        install_authorized: bool,
        on_plan: PlanCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> RunReport:
        conflicts = name_conflicts((spec.id, spec.file_name) for spec in specs)
        if conflicts:
            raise ValueError("; ".join(conflicts))

        self._specs = list(specs)
        self._states = [DriverState() for _ in self._specs]
        self._host_class = host_class
        self._on_progress = on_progress

        report = RunReport(host_class=host_class)
        every = range(len(self._specs))

        logger.info("Checking published driver versions (%d drivers)", len(self._specs))
        self._fan_out(self._check_remote, every, stage="remote-check")

        logger.info("Checking installed driver versions")
        self._fan_out(self._check_local, every, stage="local-check")

        report.rows = [
            display_row(spec, state, host_class)
            for spec, state in zip(self._specs, self._states)
        ]
        if on_plan:
            on_plan(report.rows)

        report.any_update_needed = any_update_needed(self._states)
        if not report.any_update_needed:
            report.halt_reason = "up-to-date"
            logger.info("Driver versions are up to date")
            return self._finish(report)
        if not install_authorized:
            report.halt_reason = "not-authorized"
            logger.info("Driver updates are needed but install was not requested")
            return self._finish(report)

        report.proceeded = True
        targets = [i for i in every if self._states[i].needs_update and not self._states[i].failed]

        self._fan_out(self._download, targets, stage="download")
        self._fan_out(self._extract, [i for i in targets if not self._states[i].failed], stage="extract")

        for i in targets:
            if not self._states[i].failed:
                self._guard(self._install, i, stage="install")
                if self._states[i].stage is UpdateStage.DONE:
                    report.installed.append(self._specs[i].id)

        for i in targets:
            try:
                self.executor.cleanup(self._specs[i])
            except CleanupError as e:
                logger.warning("%s", e)
                report.warnings.append(str(e))

        return self._finish(report)

    # ── Phase plumbing ──────────────────────────────────────────

    def _fan_out(self, task: Callable[[int], None], indices: Sequence[int], stage: str) -> None:
        """Run ``task`` for each index concurrently and wait for all."""
        indices = list(indices)
        if not indices:
            return
        workers = min(len(indices), self.settings.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=stage) as pool:
            futures = {pool.submit(self._guard, task, i, stage): i for i in indices}
            for future in as_completed(futures):
                future.result()

    def _guard(self, task: Callable[[int], None], i: int, stage: str) -> None:
        """Run one driver's step, turning errors into that driver's failure."""
        spec, state = self._specs[i], self._states[i]
        try:
            task(i)
        except UpdaterError as e:
            logger.error("%s: %s failed: %s", spec.id, stage, e)
            self._fail(i, _failure(spec, stage, e))
        except Exception as e:
            logger.exception("%s: unexpected error during %s", spec.id, stage)
            self._fail(i, _failure(spec, stage, e))

    def _fail(self, i: int, failure: DriverFailure) -> None:
        state = self._states[i]
        state.error = failure
        self._set_stage(i, UpdateStage.FAILED)

    def _set_stage(self, i: int, stage: UpdateStage) -> None:
        self._states[i].stage = stage
        if self._on_progress:
            self._on_progress(self._specs[i].id, stage.value)

    def _finish(self, report: RunReport) -> RunReport:
        report.failures = [s.error for s in self._states if s.error is not None]
        return report

    # ── Phase tasks (each writes only its own slot) ─────────────

    def _check_remote(self, i: int) -> None:
        spec, state = self._specs[i], self._states[i]
        try:
            state.latest = fetch_latest(
                self.registry,
                spec.version_url,
                spec.version_pattern,
                driver_id=spec.id,
                timeout=self.settings.remote_timeout,
            )
        except UpdaterError as e:
            # Only matters if the driver turns out to be eligible
            state.remote_error = _failure(spec, "remote-check", e)
            logger.debug("%s: remote check failed: %s", spec.id, e)

    def _check_local(self, i: int) -> None:
        spec, state = self._specs[i], self._states[i]

        eligibility = evaluate_driver(spec, self._host_class)
        if not eligibility.ok:
            apply_decision(state, Decision.NOT_APPLICABLE)
            logger.info("%s: not supported on %s", spec.id, self._host_class)
            return
        state.eligible = True

        if state.remote_error is not None:
            self._fail(i, state.remote_error)
            return

        installed = fetch_installed(
            self.registry,
            spec.probe_command,
            driver_id=spec.id,
            shell=self.settings.probe_shell,
            timeout=self.settings.probe_timeout,
        )
        state.installed = installed.version
        state.installed_display = installed.display

        decision = plan(eligibility, state.latest, state.installed)
        apply_decision(state, decision)
        logger.info(
            "%s: installed %s, latest %s → %s",
            spec.id,
            installed.display,
            state.latest,
            decision.value,
        )

    def _download(self, i: int) -> None:
        self._set_stage(i, UpdateStage.DOWNLOADING)
        self.executor.download(self._specs[i])

    def _extract(self, i: int) -> None:
        self._set_stage(i, UpdateStage.EXTRACTING)
        self.executor.extract(self._specs[i])

    def _install(self, i: int) -> None:
        spec = self._specs[i]
        self._set_stage(i, UpdateStage.INSTALLING)
        logger.info("Installing %s version %s driver", spec.id, self._states[i].latest)
        self.executor.install(spec)
        self._set_stage(i, UpdateStage.DONE)
