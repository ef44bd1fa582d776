"""
Comparison table — the fixed-width block printed after the local check.

    Type | Installed | Latest    | Update Available
    ---- | --------- | --------- | ----------------
    nvme | 1.4.0     | 1.5.0     | yes
    ena  | none      | none      | not supported on t2.micro instance type
"""

from __future__ import annotations

from driver_updater.core.models.report import DisplayRow

_HEADERS = ("Type", "Installed", "Latest", "Update Available")
_MIN_WIDTHS = (4, 9, 9)


def render_table(rows: list[DisplayRow]) -> list[str]:
    """Render rows as table lines, in the order given."""
    widths = [
        max([_MIN_WIDTHS[0]] + [len(r.driver_id) for r in rows]),
        max([_MIN_WIDTHS[1]] + [len(r.installed) for r in rows]),
        max([_MIN_WIDTHS[2]] + [len(r.latest) for r in rows]),
    ]

    def line(cells: tuple[str, str, str, str]) -> str:
        first = " | ".join(c.ljust(w) for c, w in zip(cells[:3], widths))
        return f"{first} | {cells[3]}"

    lines = [
        line(_HEADERS),
        line(tuple("-" * w for w in widths) + ("-" * len(_HEADERS[3]),)),
    ]
    for row in rows:
        lines.append(line((row.driver_id, row.installed, row.latest, row.note)))
    return lines
