"""
Shared test fixtures and configuration.

The orchestrator never touches the host directly, so most tests run it
against scripted adapters:

    http   ScriptedHttp   page text per ``<driver>:remote-check`` id,
                          zip bytes written to disk for ``<driver>:download``
    shell  MockAdapter    probe output per ``<driver>:local-check`` id
    archive               the real ArchiveAdapter
"""

import io
import zipfile
from pathlib import Path

import pytest

from driver_updater.adapters.archive.extract import ArchiveAdapter
from driver_updater.adapters.base import ExecutionContext
from driver_updater.adapters.mock import MockAdapter
from driver_updater.adapters.registry import AdapterRegistry
from driver_updater.core.models.action import Receipt
from driver_updater.core.models.config import Settings
from driver_updater.core.models.driver import DriverSpec, EligibilityRule


def zip_bytes(files: dict[str, str]) -> bytes:
    """Build an in-memory zip from ``{member name: text}``."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, text in files.items():
            zf.writestr(name, text)
    return buf.getvalue()


DEFAULT_BUNDLE = zip_bytes({"install.ps1": "Write-Host installed", "driver.inf": "[Version]"})


class ScriptedHttp(MockAdapter):
    """Mock ``http`` adapter that also writes download payloads to ``dest``."""

    def __init__(self) -> None:
        super().__init__(adapter_name="http", default_output="")
        self._files: dict[str, bytes] = {}

    def set_file(self, action_id: str, data: bytes) -> None:
        self._files[action_id] = data

    def execute(self, context: ExecutionContext) -> Receipt:
        receipt = super().execute(context)
        if receipt.ok and context.params.get("operation") == "download":
            dest = Path(context.params["dest"])
            dest.write_bytes(self._files.get(context.action.id, DEFAULT_BUNDLE))
            receipt.output = str(dest)
        return receipt


def make_spec(
    driver_id: str,
    file_name: str | None = None,
    eligibility: EligibilityRule | None = None,
) -> DriverSpec:
    file_name = file_name or f"{driver_id.upper()}.zip"
    stem = file_name.split(".", 1)[0]
    return DriverSpec(
        id=driver_id,
        name=f"Test {driver_id}",
        download_url=f"https://downloads.example.com/{driver_id}/Latest/{file_name}",
        probe_command=f"Get-DriverVersion {driver_id}",
        install_command=f"powershell.exe -File {stem}\\install.ps1 -NoReboot",
        version_url=f"https://docs.example.com/{driver_id}.html",
        version_pattern=r"\d+\.\d+\.\d+",
        eligibility=eligibility,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temp work dir, preflight disabled."""
    return Settings(
        work_dir=str(tmp_path),
        require_windows=False,
        require_admin=False,
    )


@pytest.fixture
def http() -> ScriptedHttp:
    return ScriptedHttp()


@pytest.fixture
def shell() -> MockAdapter:
    return MockAdapter(adapter_name="shell", default_output="")


@pytest.fixture
def registry(tmp_path: Path, http: ScriptedHttp, shell: MockAdapter) -> AdapterRegistry:
    reg = AdapterRegistry(work_dir=str(tmp_path))
    reg.register(http)
    reg.register(shell)
    reg.register(ArchiveAdapter())
    return reg


@pytest.fixture
def specs() -> list[DriverSpec]:
    """Three drivers: allow-listed, unrestricted, deny-listed."""
    return [
        make_spec("nvme", eligibility=EligibilityRule(policy="allow", prefixes=("m5", "c5"))),
        make_spec("pv"),
        make_spec("ena", eligibility=EligibilityRule(policy="deny", prefixes=("t2",), classes=("m4.large",))),
    ]


@pytest.fixture
def page():
    """Build a documentation page listing the given versions."""

    def _page(*versions: str) -> str:
        rows = "".join(f"<tr><td>{v}</td><td>Release notes</td></tr>" for v in versions)
        return f"<html><body><table>{rows}</table></body></html>"

    return _page


@pytest.fixture
def spec_factory():
    return make_spec


@pytest.fixture
def bundle():
    return zip_bytes
