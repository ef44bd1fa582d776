"""
Remote version resolver — newest published version of a driver.

Fetches the driver's documentation page and scans it with the driver's
version pattern. Every distinct match is parsed and the numerically
greatest wins, so ``10.0.0`` beats ``9.0.0`` (a plain string sort would
pick ``9.0.0``).
"""

from __future__ import annotations

import logging
import re

from driver_updater.adapters.registry import AdapterRegistry
from driver_updater.core.domain.version import VersionString
from driver_updater.core.errors import NoMatch, ParseError, RemoteUnavailable
from driver_updater.core.models.action import Action

logger = logging.getLogger(__name__)

MAX_REMOTE_TIMEOUT = 5.0


def find_versions(content: str, pattern: str) -> list[str]:
    """All non-overlapping full matches of ``pattern``, deduplicated.

    First-seen order is kept. Full matches (group 0) are used even when
    the pattern has capture groups.
    """
    matches = (m.group(0) for m in re.finditer(pattern, content))
    return list(dict.fromkeys(m for m in matches if m))


def highest_version(candidates: list[str]) -> VersionString | None:
    best: VersionString | None = None
    for text in candidates:
        try:
            version = VersionString.parse(text)
        except ParseError:
            logger.debug("Ignoring non-version match %r", text)
            continue
        if best is None or version > best:
            best = version
    return best


def fetch_latest(
    registry: AdapterRegistry,
    url: str,
    pattern: str,
    *,
    driver_id: str = "",
    timeout: float = MAX_REMOTE_TIMEOUT,
) -> VersionString:
    """Newest version published at ``url``.

    Raises:
        RemoteUnavailable: The page could not be fetched in time.
        NoMatch: No match of ``pattern`` parses as a version.
    """
    action = Action(
        id=f"{driver_id}:remote-check" if driver_id else "remote-check",
        adapter="http",
        driver_id=driver_id or None,
        params={
            "operation": "get",
            "url": url,
            "timeout": min(timeout, MAX_REMOTE_TIMEOUT),
        },
    )
    receipt = registry.execute_action(action)
    if not receipt.ok:
        raise RemoteUnavailable(receipt.error or f"Could not fetch {url}")

    candidates = find_versions(receipt.output, pattern)
    latest = highest_version(candidates)
    if latest is None:
        raise NoMatch(f"No version matching {pattern!r} found at {url}")

    logger.debug(
        "%s: %d distinct matches at %s, latest %s",
        driver_id or url,
        len(candidates),
        url,
        latest,
    )
    return latest
