"""
Tests for the orchestrator — phase pipeline, decision gate, failure isolation.

All drivers run against scripted ``http``/``shell`` adapters and the real
archive adapter, inside a temp work dir.
"""

from pathlib import Path

import pytest

from driver_updater.core.engine.orchestrator import Orchestrator
from driver_updater.core.errors import CleanupError
from driver_updater.core.models.driver import Decision, UpdateStage

UP_TO_DATE = {"nvme": ("1.4.0", "1.4.0.0"), "pv": ("8.4.3", "8.4.3"), "ena": ("2.6.0", "2.6.0.0")}


@pytest.fixture
def orchestrator(registry, settings) -> Orchestrator:
    return Orchestrator(registry, settings)


@pytest.fixture
def script(http, shell, page):
    """Script ``{driver: (remote, local)}`` onto the mock adapters."""

    def _script(versions: dict[str, tuple[str, str]]) -> None:
        for driver_id, (remote, local) in versions.items():
            http.set_output(f"{driver_id}:remote-check", page(remote))
            shell.set_output(f"{driver_id}:local-check", local)

    return _script


def _steps(adapter, step: str) -> list[str]:
    return [i for i in adapter.called_ids() if i.endswith(f":{step}")]


# ── End-to-end scenarios ─────────────────────────────────────────────


class TestScenarios:
    def test_all_up_to_date(self, orchestrator, specs, script, http, shell):
        script(UP_TO_DATE)
        report = orchestrator.run(specs, "m5.large", install_authorized=True)

        assert report.any_update_needed is False
        assert report.halt_reason == "up-to-date"
        assert report.proceeded is False
        assert report.exit_code == 0
        assert [r.note for r in report.rows] == ["no", "no", "no"]
        assert _steps(http, "download") == []
        assert _steps(shell, "install") == []

    def test_one_ineligible_two_up_to_date(self, orchestrator, specs, script, shell):
        script(UP_TO_DATE)
        report = orchestrator.run(specs, "t3.large", install_authorized=True)

        nvme = report.rows[0]
        assert nvme.driver_id == "nvme"
        assert nvme.note == "not supported on t3.large instance type"
        assert (nvme.installed, nvme.latest) == ("none", "none")
        assert report.any_update_needed is False
        assert "nvme:local-check" not in shell.called_ids()
        assert orchestrator.states[0].decision is Decision.NOT_APPLICABLE

    def test_one_update_installed(self, orchestrator, specs, script, http, shell, tmp_path: Path):
        script({**UP_TO_DATE, "nvme": ("1.5.0", "1.4.0.0")})
        progress: list[tuple[str, str]] = []
        report = orchestrator.run(
            specs,
            "m5.large",
            install_authorized=True,
            on_progress=lambda d, s: progress.append((d, s)),
        )

        assert report.proceeded is True
        assert report.installed == ["nvme"]
        assert report.exit_code == 0
        assert report.rows[0].note == "yes"
        assert report.rows[0].installed == "1.4.0"
        assert _steps(http, "download") == ["nvme:download"]
        assert _steps(shell, "install") == ["nvme:install"]
        assert not (tmp_path / "NVME").exists()
        assert not (tmp_path / "NVME.zip").exists()
        assert progress == [
            ("nvme", "downloading"),
            ("nvme", "extracting"),
            ("nvme", "installing"),
            ("nvme", "done"),
        ]
        stages = [s.stage for s in orchestrator.states]
        assert stages == [UpdateStage.DONE, UpdateStage.QUEUED, UpdateStage.QUEUED]


# ── Decision gate ────────────────────────────────────────────────────


class TestGate:
    def test_not_authorized_stops_before_download(self, orchestrator, specs, script, http):
        script({**UP_TO_DATE, "pv": ("8.5.0", "8.4.3")})
        report = orchestrator.run(specs, "m5.large", install_authorized=False)

        assert report.any_update_needed is True
        assert report.halt_reason == "not-authorized"
        assert report.proceeded is False
        assert report.exit_code == 0
        assert _steps(http, "download") == []

    def test_plan_callback_sees_rows_once(self, orchestrator, specs, script):
        script(UP_TO_DATE)
        seen = []
        orchestrator.run(specs, "m5.large", install_authorized=False, on_plan=seen.append)
        assert len(seen) == 1
        assert [r.driver_id for r in seen[0]] == ["nvme", "pv", "ena"]

    def test_numeric_latest(self, orchestrator, spec_factory, http, shell, page):
        spec = spec_factory("pv")
        http.set_output("pv:remote-check", page("9.0.0", "10.0.0", "9.9.9"))
        shell.set_output("pv:local-check", "9.9.9")
        report = orchestrator.run([spec], "m5.large", install_authorized=False)
        assert report.rows[0].latest == "10.0.0"
        assert report.any_update_needed is True

    def test_newer_local_is_not_downgraded(self, orchestrator, spec_factory, http, shell, page):
        http.set_output("pv:remote-check", page("1.4.9"))
        shell.set_output("pv:local-check", "1.5.0")
        report = orchestrator.run([spec_factory("pv")], "m5.large", install_authorized=True)
        assert report.halt_reason == "up-to-date"

    def test_empty_driver_list(self, orchestrator):
        report = orchestrator.run([], "m5.large", install_authorized=True)
        assert report.rows == []
        assert report.halt_reason == "up-to-date"

    def test_install_order_is_table_order(self, registry, settings, specs, script, shell):
        script({"nvme": ("1.5.0", "1.4.0"), "pv": ("8.5.0", "8.4.3"), "ena": ("2.7.0", "2.6.0")})
        orchestrator = Orchestrator(registry, settings.model_copy(update={"max_workers": 1}))
        report = orchestrator.run(specs, "m5.large", install_authorized=True)
        assert _steps(shell, "install") == ["nvme:install", "pv:install", "ena:install"]
        assert report.installed == ["nvme", "pv", "ena"]

    def test_shared_work_dir_name_is_rejected(self, orchestrator, spec_factory, http):
        specs = [spec_factory("a", "driver.zip"), spec_factory("b", "driver.zip")]
        with pytest.raises(ValueError, match="'a' and 'b' both use 'driver.zip'"):
            orchestrator.run(specs, "m5.large", install_authorized=True)
        assert http.called_ids() == []

    def test_local_check_uses_configured_shell(self, registry, settings, spec_factory, http, shell, page):
        http.set_output("pv:remote-check", page("1.0.0"))
        shell.set_output("pv:local-check", "1.0.0")
        orchestrator = Orchestrator(registry, settings.model_copy(update={"probe_shell": ["pwsh", "-Command"]}))
        orchestrator.run([spec_factory("pv")], "m5.large", install_authorized=False)
        assert shell.call_log[0].params["argv"] == ["pwsh", "-Command", "Get-DriverVersion pv"]


# ── Failure isolation ────────────────────────────────────────────────


class TestFailures:
    def test_remote_failure_marks_only_that_driver(self, orchestrator, specs, script, http):
        script(UP_TO_DATE)
        http.set_failure("pv:remote-check", "Request to docs failed: timed out")
        report = orchestrator.run(specs, "m5.large", install_authorized=True)

        assert report.exit_code == 1
        failure = report.failure_for("pv")
        assert failure.stage == "remote-check"
        assert failure.kind == "RemoteUnavailable"
        assert report.rows[1].note.startswith("error: ")
        assert [r.note for r in (report.rows[0], report.rows[2])] == ["no", "no"]

    def test_remote_failure_of_ineligible_driver_is_ignored(self, orchestrator, specs, script, http):
        script(UP_TO_DATE)
        http.set_failure("nvme:remote-check", "timed out")
        report = orchestrator.run(specs, "t3.large", install_authorized=True)
        assert report.failures == []
        assert report.exit_code == 0

    def test_no_match_is_failure(self, orchestrator, specs, script, http):
        script(UP_TO_DATE)
        http.set_output("ena:remote-check", "<html>page moved</html>")
        report = orchestrator.run(specs, "m5.large", install_authorized=False)
        assert report.failure_for("ena").kind == "NoMatch"

    def test_probe_failure(self, orchestrator, specs, script, shell):
        script(UP_TO_DATE)
        shell.set_failure("ena:local-check", "Executable not found: powershell.exe")
        report = orchestrator.run(specs, "m5.large", install_authorized=True)
        failure = report.failure_for("ena")
        assert failure.stage == "local-check"
        assert failure.kind == "ProbeUnavailable"

    def test_empty_probe_output(self, orchestrator, specs, script, shell):
        script({**UP_TO_DATE, "pv": ("8.4.3", "")})
        report = orchestrator.run(specs, "m5.large", install_authorized=True)
        assert report.failure_for("pv").error == "pv version not returned"

    def test_failed_driver_does_not_block_others(self, orchestrator, specs, script, shell):
        script({**UP_TO_DATE, "nvme": ("1.5.0", "garbage"), "pv": ("8.5.0", "8.4.3")})
        report = orchestrator.run(specs, "m5.large", install_authorized=True)
        assert report.failure_for("nvme").kind == "ParseError"
        assert report.installed == ["pv"]
        assert _steps(shell, "install") == ["pv:install"]

    def test_download_failure(self, orchestrator, specs, script, http, shell):
        script({**UP_TO_DATE, "nvme": ("1.5.0", "1.4.0"), "pv": ("8.5.0", "8.4.3")})
        http.set_failure("nvme:download", "HTTP 503 from s3")
        report = orchestrator.run(specs, "m5.large", install_authorized=True)

        assert report.failure_for("nvme").stage == "download"
        assert report.installed == ["pv"]
        assert "nvme:install" not in shell.called_ids()
        assert orchestrator.states[0].stage is UpdateStage.FAILED

    def test_unsafe_archive_skips_install(self, orchestrator, specs, script, http, shell, bundle, tmp_path: Path):
        script({**UP_TO_DATE, "nvme": ("1.5.0", "1.4.0")})
        http.set_file("nvme:download", bundle({"../../escape.ps1": "bad"}))
        report = orchestrator.run(specs, "m5.large", install_authorized=True)

        failure = report.failure_for("nvme")
        assert failure.stage == "extract"
        assert failure.kind == "ExtractError"
        assert "nvme:install" not in shell.called_ids()
        assert not (tmp_path.parent / "escape.ps1").exists()
        assert not (tmp_path / "NVME").exists()

    def test_install_failure_continues_with_next_driver(self, orchestrator, specs, script, shell, tmp_path: Path):
        script({**UP_TO_DATE, "nvme": ("1.5.0", "1.4.0"), "pv": ("8.5.0", "8.4.3")})
        shell.set_failure("nvme:install", "Command exited with code 1")
        report = orchestrator.run(specs, "m5.large", install_authorized=True)

        assert report.failure_for("nvme").stage == "install"
        assert report.installed == ["pv"]
        assert report.exit_code == 1
        # Cleanup runs whatever the install outcome
        assert not (tmp_path / "NVME").exists()

    def test_cleanup_error_is_only_a_warning(self, orchestrator, specs, script, monkeypatch):
        script({**UP_TO_DATE, "nvme": ("1.5.0", "1.4.0")})

        def broken_cleanup(spec):
            raise CleanupError(f"Could not clean up {spec.id}: in use")

        monkeypatch.setattr(orchestrator.executor, "cleanup", broken_cleanup)
        report = orchestrator.run(specs, "m5.large", install_authorized=True)

        assert report.installed == ["nvme"]
        assert report.failures == []
        assert report.warnings == ["Could not clean up nvme: in use"]
        assert report.exit_code == 0

    def test_unexpected_exception_is_contained(self, orchestrator, specs, script, monkeypatch):
        script({**UP_TO_DATE, "nvme": ("1.5.0", "1.4.0"), "pv": ("8.5.0", "8.4.3")})
        real_download = orchestrator.executor.download

        def flaky(spec):
            if spec.id == "nvme":
                raise RuntimeError("disk vanished")
            return real_download(spec)

        monkeypatch.setattr(orchestrator.executor, "download", flaky)
        report = orchestrator.run(specs, "m5.large", install_authorized=True)

        assert report.failure_for("nvme").kind == "RuntimeError"
        assert report.installed == ["pv"]

    def test_report_to_dict(self, orchestrator, specs, script, http):
        script(UP_TO_DATE)
        http.set_failure("pv:remote-check", "timed out")
        data = orchestrator.run(specs, "m5.large", install_authorized=False).to_dict()
        assert data["host_class"] == "m5.large"
        assert data["exit_code"] == 1
        assert data["failures"][0]["driver_id"] == "pv"
        assert len(data["rows"]) == 3
