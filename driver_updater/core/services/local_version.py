"""
Local version resolver — the version currently installed on this host.

Runs the driver's probe command through the configured probe shell
(``Settings.probe_shell``, PowerShell by default) and parses its
trimmed output. Windows often reports four components (``1.4.0.0``);
the full value is kept for comparison and a three-component form for
the table.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from driver_updater.adapters.registry import AdapterRegistry
from driver_updater.core.domain.version import VersionString
from driver_updater.core.errors import EmptyOutput, ProbeUnavailable
from driver_updater.core.models.action import Action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstalledVersion:
    version: VersionString
    display: str


def fetch_installed(
    registry: AdapterRegistry,
    probe_command: str,
    *,
    shell: Sequence[str],
    driver_id: str = "",
    timeout: float | None = 60.0,
) -> InstalledVersion:
    """Run ``shell + [probe_command]`` and parse what it prints.

    Raises:
        ProbeUnavailable: The command could not run or exited non-zero.
        EmptyOutput: The command printed nothing.
        ParseError: The output is not a dotted numeric version.
    """
    argv = [*shell, probe_command]
    action = Action(
        id=f"{driver_id}:local-check" if driver_id else "local-check",
        adapter="shell",
        driver_id=driver_id or None,
        params={"argv": argv, "timeout": timeout},
    )
    receipt = registry.execute_action(action)
    if not receipt.ok:
        detail = receipt.error or "probe failed"
        if receipt.output:
            detail = f"{detail}: {receipt.output.splitlines()[-1]}"
        raise ProbeUnavailable(detail)

    text = receipt.output.strip()
    if not text:
        raise EmptyOutput(f"{driver_id or 'driver'} version not returned")

    version = VersionString.parse(text)
    display = version.canonical(3)
    logger.debug("%s: installed %s (display %s)", driver_id or "probe", version, display)
    return InstalledVersion(version=version, display=display)
