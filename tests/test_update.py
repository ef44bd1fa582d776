"""
Tests for the update use case — config, preflight, host detection, run.
"""

from pathlib import Path

import pytest

from driver_updater.core.models.config import Settings
from driver_updater.core.services import host
from driver_updater.core.use_cases.update import build_registry, run_update


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """drivers.yml with the built-in drivers and preflight relaxed."""
    path = tmp_path / "drivers.yml"
    path.write_text(
        "settings:\n"
        f'  work_dir: "{(tmp_path / "work").as_posix()}"\n'
        "  require_windows: false\n"
        "  require_admin: false\n"
    )
    return path


@pytest.fixture
def scripted(http, shell, page):
    http.set_output("nvme:remote-check", page("1.4.0"))
    http.set_output("pv:remote-check", page("8.4.3"))
    http.set_output("ena:remote-check", page("2.6.0"))
    shell.set_output("nvme:local-check", "1.4.0.0")
    shell.set_output("pv:local-check", "8.4.3")
    shell.set_output("ena:local-check", "2.6.0.0")


class TestRunUpdate:
    def test_up_to_date(self, config_file, registry, scripted):
        result = run_update(config_file, instance_type="M5.Large", registry=registry)
        assert result.error is None
        assert result.host_class == "m5.large"
        assert result.report.halt_reason == "up-to-date"
        assert result.exit_code == 0

        data = result.to_dict()
        assert data["config_path"] == str(config_file)
        assert data["report"]["rows"][0]["driver_id"] == "nvme"
        assert data["exit_code"] == 0

    def test_creates_work_dir(self, config_file, registry, scripted, tmp_path: Path):
        run_update(config_file, instance_type="m5.large", registry=registry)
        assert (tmp_path / "work").is_dir()

    def test_install_flag_is_passed(self, config_file, registry, scripted, shell, http, page):
        http.set_output("pv:remote-check", page("8.5.0"))
        result = run_update(config_file, install=True, instance_type="m5.large", registry=registry)
        assert result.install is True
        assert result.report.installed == ["pv"]
        assert "pv:install" in shell.called_ids()

    def test_detects_instance_type(self, config_file, registry, scripted, http):
        http.set_output("host:metadata-token", "tok")
        http.set_output("host:instance-type", "t2.micro")
        result = run_update(config_file, registry=registry)
        assert result.host_class == "t2.micro"
        assert result.report.rows[2].note == "not supported on t2.micro instance type"

    def test_not_ec2(self, config_file, registry, http):
        http.set_failure("host:metadata-token", "timed out")
        http.set_failure("host:instance-type", "timed out")
        result = run_update(config_file, registry=registry)
        assert result.error == "This program only works on AWS EC2 instances."
        assert result.report is None
        assert result.exit_code == 1
        assert result.to_dict() == {"error": result.error, "exit_code": 1}

    def test_preflight_failure(self, tmp_path: Path, registry, monkeypatch):
        monkeypatch.setattr(host, "is_windows", lambda: False)
        path = tmp_path / "drivers.yml"
        path.write_text("settings:\n  require_admin: false\n")
        result = run_update(path, instance_type="m5.large", registry=registry)
        assert result.error == "This program only works with Windows."
        assert result.exit_code == 1

    def test_config_error(self, tmp_path: Path, registry):
        result = run_update(tmp_path / "missing.yml", registry=registry)
        assert "Config file not found" in result.error
        assert result.config is None


class TestBuildRegistry:
    def test_adapters(self):
        registry = build_registry(Settings(probe_shell=["pwsh", "-Command"]))
        assert sorted(registry.list_adapters()) == ["archive", "http", "shell"]
        assert registry.adapter_status()["shell"]["type"] == "ShellCommandAdapter"
