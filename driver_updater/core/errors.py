"""
Error taxonomy for the update pipeline.

Adapters never raise; they hand back failed Receipts. Services translate
those into the typed errors below, and the orchestrator catches
``UpdaterError`` per driver so one driver's failure never ends the run.
"""

from __future__ import annotations


class UpdaterError(Exception):
    """Base class for every pipeline error."""


class ParseError(UpdaterError, ValueError):
    """A version string is empty or has a non-numeric segment."""


# ── Version discovery ───────────────────────────────────────────


class RemoteUnavailable(UpdaterError):
    """The version reference page could not be fetched."""


class NoMatch(UpdaterError):
    """The version pattern matched nothing usable in the fetched page."""


class ProbeUnavailable(UpdaterError):
    """The local version probe command failed to run."""


class EmptyOutput(UpdaterError):
    """The local version probe produced no usable text."""


# ── Update execution ────────────────────────────────────────────


class DownloadError(UpdaterError):
    pass


class ExtractError(UpdaterError):
    """Archive expansion failed, including path-traversal violations."""


class InstallError(UpdaterError):
    pass


class CleanupError(UpdaterError):
    """Cleanup failed. Reported as a warning, never as a driver failure."""


# ── Preflight ───────────────────────────────────────────────────


class HostDetectionError(UpdaterError):
    """The host class could not be determined (not an EC2 instance)."""


class PreflightError(UpdaterError):
    """Unsupported platform or insufficient privilege."""
