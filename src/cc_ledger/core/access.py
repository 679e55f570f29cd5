"""Access-type total order shared by the file ledger and the turn aggregator.

read < modified < created. A path's access type only ever moves up this
order; both consumers fold repeated touches through upgrade_access().

// [LAW:one-source-of-truth] The priority order and its presentation tables live here only.
"""

from __future__ import annotations

from enum import Enum


class AccessType(str, Enum):
    READ = "read"
    MODIFIED = "modified"
    CREATED = "created"


ACCESS_PRIORITY: dict[AccessType, int] = {
    AccessType.READ: 0,
    AccessType.MODIFIED: 1,
    AccessType.CREATED: 2,
}


def upgrade_access(current: AccessType | None, incoming: AccessType) -> AccessType:
    """Return the stronger of two access types. None means no prior touch."""
    if current is None:
        return incoming
    if ACCESS_PRIORITY[incoming] > ACCESS_PRIORITY[current]:
        return incoming
    return current


# ─── Presentation tables ─────────────────────────────────────────────────────
# [LAW:dataflow-not-control-flow] Renderers look these up by access type.

ACCESS_ICON: dict[AccessType, str] = {
    AccessType.READ: "eye",
    AccessType.MODIFIED: "pencil",
    AccessType.CREATED: "plus",
}

# Rich style names.
ACCESS_COLOR: dict[AccessType, str] = {
    AccessType.READ: "blue",
    AccessType.MODIFIED: "yellow",
    AccessType.CREATED: "green",
}

ACCESS_LABEL: dict[AccessType, str] = {
    AccessType.READ: "Read",
    AccessType.MODIFIED: "Modified",
    AccessType.CREATED: "Created",
}

# Single-character glyphs for terminal rendering of ACCESS_ICON.
ACCESS_GLYPH: dict[AccessType, str] = {
    AccessType.READ: "○",
    AccessType.MODIFIED: "✎",
    AccessType.CREATED: "+",
}
