"""
Update executor — download, extract, install and clean up one driver.

Each step is a single adapter call that either succeeds or raises the
step's typed error. Sequencing and state transitions belong to the
orchestrator; the executor only knows where each driver's files live
inside the work directory:

    <work_dir>/<file from URL>      the download (e.g. AWSNVMe.zip)
    <work_dir>/<file minus suffix>  the extraction directory (AWSNVMe/)
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from driver_updater.adapters.registry import AdapterRegistry
from driver_updater.core.errors import CleanupError, DownloadError, ExtractError, InstallError
from driver_updater.core.models.action import Action
from driver_updater.core.models.config import Settings
from driver_updater.core.models.driver import DriverSpec

logger = logging.getLogger(__name__)


class UpdateExecutor:
    """Performs the side-effecting steps of a driver update."""

    def __init__(self, registry: AdapterRegistry, settings: Settings | None = None):
        self.registry = registry
        self.settings = settings or Settings()
        self.work_dir = Path(self.settings.work_dir).resolve()

    # ── Paths ───────────────────────────────────────────────────

    def download_path(self, spec: DriverSpec) -> Path:
        return self.work_dir / spec.file_name

    def extraction_dir(self, spec: DriverSpec) -> Path | None:
        """Where the bundle expands to; None when the download is not an archive."""
        name = spec.extract_dir_name
        return self.work_dir / name if name else None

    # ── Steps ───────────────────────────────────────────────────

    def download(self, spec: DriverSpec) -> Path:
        if not spec.file_name:
            raise DownloadError(f"Cannot derive a file name from {spec.download_url}")

        dest = self.download_path(spec)
        logger.info("Downloading latest %s driver to %s", spec.id, dest.name)
        receipt = self.registry.execute_action(
            Action(
                id=f"{spec.id}:download",
                adapter="http",
                driver_id=spec.id,
                params={
                    "operation": "download",
                    "url": spec.download_url,
                    "dest": str(dest),
                    "timeout": self.settings.download_timeout,
                },
            )
        )
        if not receipt.ok:
            raise DownloadError(f"Error while downloading {spec.download_url}: {receipt.error}")
        return dest

    def extract(self, spec: DriverSpec) -> Path | None:
        """Expand the download and delete the archive.

        Non-archive downloads (bare installers) are left alone.
        """
        dest = self.extraction_dir(spec)
        if dest is None:
            logger.debug("%s is not an archive, nothing to extract", spec.file_name)
            return None

        source = self.download_path(spec)
        logger.info("Extracting %s", source.name)
        receipt = self.registry.execute_action(
            Action(
                id=f"{spec.id}:extract",
                adapter="archive",
                driver_id=spec.id,
                params={"source": str(source), "dest": str(dest)},
            )
        )
        if not receipt.ok:
            raise ExtractError(f"Cannot extract {source.name}: {receipt.error}")

        try:
            source.unlink(missing_ok=True)
        except OSError as e:
            raise ExtractError(f"Extracted {source.name} but could not remove it: {e}") from e
        return dest

    def install(self, spec: DriverSpec) -> str:
        """Run the install command; returns its captured output.

        The command is split on whitespace only: the first token is the
        executable, the rest are arguments. Backslashes in Windows paths
        are kept as written.
        """
        argv = spec.install_command.split()
        if not argv:
            raise InstallError(f"{spec.id} has an empty install command")

        receipt = self.registry.execute_action(
            Action(
                id=f"{spec.id}:install",
                adapter="shell",
                driver_id=spec.id,
                params={
                    "argv": argv,
                    "cwd": str(self.work_dir),
                    "timeout": self.settings.install_timeout,
                },
            )
        )
        if not receipt.ok:
            detail = receipt.error or "install failed"
            if receipt.output:
                detail = f"{detail}: {receipt.output.splitlines()[-1]}"
            raise InstallError(detail)

        logger.debug("%s install output:\n%s", spec.id, receipt.output)
        return receipt.output

    def cleanup(self, spec: DriverSpec) -> None:
        """Remove the extraction directory and any leftover download.

        Runs whatever happened to the install. Missing paths are fine.
        """
        problems: list[str] = []

        dest = self.extraction_dir(spec)
        if dest is not None and dest.exists():
            try:
                shutil.rmtree(dest)
            except OSError as e:
                problems.append(f"{dest}: {e}")

        download = self.download_path(spec)
        if spec.file_name and download.is_file():
            try:
                download.unlink()
            except OSError as e:
                problems.append(f"{download}: {e}")

        if problems:
            raise CleanupError(f"Could not clean up {spec.id}: " + "; ".join(problems))
