"""
Host checks — platform, privilege and EC2 instance type.

All of these run once, before orchestration starts. Any failure is a
startup error: the updater only makes sense elevated, on Windows, on
an EC2 instance.
"""

from __future__ import annotations

import logging
import os
import platform
from dataclasses import dataclass
from urllib.parse import urljoin

from driver_updater.adapters.registry import AdapterRegistry
from driver_updater.core.errors import HostDetectionError, PreflightError
from driver_updater.core.models.action import Action
from driver_updater.core.models.config import DEFAULT_METADATA_URL, Settings

logger = logging.getLogger(__name__)

_TOKEN_PATH = "/latest/api/token"
_TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
_TOKEN_HEADER = "X-aws-ec2-metadata-token"


def is_windows() -> bool:
    return platform.system().lower() == "windows"


def is_admin() -> bool:
    """Whether the process runs elevated (Administrator / root)."""
    if os.name == "nt":
        import ctypes

        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0


@dataclass
class PreflightCheck:
    name: str
    ok: bool
    message: str = ""
    required: bool = True

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ok": self.ok,
            "message": self.message,
            "required": self.required,
        }


def preflight_checks(settings: Settings) -> list[PreflightCheck]:
    """Evaluate platform and privilege checks without raising."""
    windows = is_windows()
    admin = is_admin()
    return [
        PreflightCheck(
            name="platform",
            ok=windows,
            message=f"{platform.system() or 'unknown'} detected"
            if windows
            else "This program only works with Windows.",
            required=settings.require_windows,
        ),
        PreflightCheck(
            name="privilege",
            ok=admin,
            message="running elevated"
            if admin
            else "You must run this program as administrator.",
            required=settings.require_admin,
        ),
    ]


def require_preflight(settings: Settings) -> None:
    """Raise PreflightError for the first failing required check."""
    for check in preflight_checks(settings):
        if check.required and not check.ok:
            raise PreflightError(check.message)


def _metadata_token(registry: AdapterRegistry, metadata_url: str, timeout: float) -> str | None:
    """IMDSv2 session token, or None when only IMDSv1 answers."""
    receipt = registry.execute_action(
        Action(
            id="host:metadata-token",
            adapter="http",
            params={
                "operation": "get",
                "method": "PUT",
                "url": urljoin(metadata_url, _TOKEN_PATH),
                "headers": {_TOKEN_TTL_HEADER: "60"},
                "timeout": timeout,
            },
        )
    )
    if receipt.ok and receipt.output.strip():
        return receipt.output.strip()
    logger.debug("IMDSv2 token unavailable (%s), falling back to IMDSv1", receipt.error)
    return None


def detect_instance_type(
    registry: AdapterRegistry,
    metadata_url: str = DEFAULT_METADATA_URL,
    timeout: float = 2.0,
) -> str:
    """Ask the EC2 metadata service for this host's instance type.

    Returns:
        The lowercased instance type, e.g. ``"m5.large"``.

    Raises:
        HostDetectionError: Nothing usable answered within ``timeout``.
    """
    token = _metadata_token(registry, metadata_url, timeout)
    params: dict = {"operation": "get", "url": metadata_url, "timeout": timeout}
    if token:
        params["headers"] = {_TOKEN_HEADER: token}

    receipt = registry.execute_action(
        Action(id="host:instance-type", adapter="http", params=params)
    )
    instance_type = receipt.output.strip().lower() if receipt.ok else ""
    if not instance_type:
        raise HostDetectionError("This program only works on AWS EC2 instances.")

    logger.info("%s EC2 instance type detected", instance_type)
    return instance_type
