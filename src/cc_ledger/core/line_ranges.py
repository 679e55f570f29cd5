"""Line-range merge utility for partial-read coverage.

A ranges list is sorted ascending, non-overlapping and non-adjacent. An
empty list on a FileAccess means "entire file covered".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cc_ledger.core.access import AccessType

if TYPE_CHECKING:
    from cc_ledger.core.file_access import FileAccess


@dataclass(frozen=True)
class LineRange:
    """Contiguous 1-based, inclusive line span."""

    start: int
    end: int


def merge_range(ranges: list[LineRange], new_range: LineRange) -> list[LineRange]:
    """Merge new_range into a sorted, non-overlapping range list.

    Single left-to-right scan. Overlapping or adjacent ranges (gap <= 1) are
    absorbed into the working range, so one merge can collapse several
    previously separate ranges. The input list is not mutated.
    """
    merged: list[LineRange] = []
    inserted = False
    working = new_range

    for r in ranges:
        if inserted or r.end < working.start - 1:
            merged.append(r)
        elif r.start > working.end + 1:
            merged.append(working)
            inserted = True
            merged.append(r)
        else:
            working = LineRange(
                start=min(r.start, working.start),
                end=max(r.end, working.end),
            )

    if not inserted:
        merged.append(working)
    return merged


def format_ranges(file: FileAccess) -> str | None:
    """Format a read entry's ranges for display, e.g. "L1–50, L100–150".

    Returns None when there is nothing partial to show: non-read entries,
    the full-file sentinel, or a single range spanning the whole file.
    """
    if file.access_type is not AccessType.READ:
        return None
    if not file.ranges:
        return None

    if file.total_lines and len(file.ranges) == 1:
        r = file.ranges[0]
        if r.start <= 1 and r.end >= file.total_lines:
            return None

    parts = [
        "L{}".format(r.start) if r.start == r.end else "L{}–{}".format(r.start, r.end)
        for r in file.ranges
    ]
    return ", ".join(parts)
