"""
L1 Domain — Work-directory names for downloads and extractions (pure).

A driver downloads to ``<work_dir>/<file name from URL>`` and, when that
file is an archive, expands into ``<work_dir>/<file name minus suffix>``.
Download and extract run every driver at once in the same directory, so
no two drivers may claim the same name. Windows paths ignore case, and
so does the check.
"""

from __future__ import annotations

from collections.abc import Iterable

ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz", ".tar")


def archive_suffix(file_name: str) -> str | None:
    """The archive suffix ``file_name`` ends with, or None."""
    lower = file_name.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if lower.endswith(suffix):
            return suffix
    return None


def is_archive(file_name: str) -> bool:
    return archive_suffix(file_name) is not None


def strip_archive_suffix(file_name: str) -> str:
    """``"AWSNVMe.zip"`` → ``"AWSNVMe"``; non-archives are returned as-is."""
    suffix = archive_suffix(file_name)
    return file_name[: -len(suffix)] if suffix else file_name


def claimed_names(file_name: str) -> tuple[str, ...]:
    """Work-dir entries created for a driver downloading ``file_name``."""
    if not file_name:
        return ()
    if is_archive(file_name):
        return (file_name, strip_archive_suffix(file_name))
    return (file_name,)


def name_conflicts(entries: Iterable[tuple[str, str]]) -> list[str]:
    """One message per work-dir name claimed by a second driver.

    Args:
        entries: ``(driver_id, file_name)`` pairs in driver-table order.
    """
    owners: dict[str, str] = {}
    problems: list[str] = []
    for driver_id, file_name in entries:
        for name in claimed_names(file_name):
            owner = owners.setdefault(name.lower(), driver_id)
            if owner != driver_id:
                problems.append(
                    f"Drivers '{owner}' and '{driver_id}' both use '{name}' in the work directory"
                )
    return problems
