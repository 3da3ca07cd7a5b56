"""
Unified diff parsing into per-line change sets.

Line numbers refer to the new revision of the file. Deleted lines do not exist
there, so they are recorded at the cursor position where they were removed.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from .errors import DiffParseError
from .models import Hunk, LineChangeSet, ParsedDiff

_HUNK_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
)

# Maximum distance between an added and a deleted line for them to count as one modification.
MODIFIED_PAIR_DISTANCE = 1


def parse_unified_diff(diff: str) -> ParsedDiff:
    """
    Parse the unified diff of a single file.

    Raises:
        DiffParseError: a line starting with ``@@`` is not a valid hunk header.
    """
    added: List[int] = []
    deleted: List[int] = []
    hunks: List[Hunk] = []
    insertions = 0
    deletions = 0

    current_line: Optional[int] = None
    hunk: Optional[Hunk] = None

    for line in diff.splitlines():
        if line.startswith("@@"):
            match = _HUNK_RE.match(line)
            if not match:
                raise DiffParseError(f"Malformed hunk header: {line!r}")
            current_line = int(match.group("new_start"))
            hunk = Hunk(start=current_line)
            hunks.append(hunk)
        elif current_line is None:
            # File headers before the first hunk
            continue
        elif line.startswith("+") and not line.startswith("+++"):
            added.append(current_line)
            hunk.content.append(line)
            insertions += 1
            current_line += 1
        elif line.startswith("-") and not line.startswith("---"):
            deleted.append(current_line)
            hunk.content.append(line)
            deletions += 1
        elif not line.startswith("\\"):
            current_line += 1

    return ParsedDiff(
        lines=reconcile(added, deleted),
        hunks=hunks,
        insertions=insertions,
        deletions=deletions,
    )


def reconcile(added: Iterable[int], deleted: Iterable[int]) -> LineChangeSet:
    """
    Pair added lines with nearby deleted lines into ``modified``.

    Greedy single pass in encounter order: each added line takes the first
    remaining deleted line within ``MODIFIED_PAIR_DISTANCE``.
    """
    remaining_added: List[int] = []
    remaining_deleted = list(deleted)
    modified: List[int] = []

    for line in added:
        partner = _first_within(line, remaining_deleted)
        if partner is None:
            remaining_added.append(line)
            continue
        modified.append(line)
        del remaining_deleted[partner]

    modified_set = _ordered_unique(modified)
    added_set = tuple(line for line in _ordered_unique(remaining_added) if line not in modified_set)
    claimed = set(modified_set) | set(added_set)
    deleted_set = tuple(line for line in _ordered_unique(remaining_deleted) if line not in claimed)
    return LineChangeSet(added=added_set, deleted=deleted_set, modified=modified_set)


def _first_within(line: int, candidates: List[int]) -> Optional[int]:
    for index, candidate in enumerate(candidates):
        if abs(line - candidate) <= MODIFIED_PAIR_DISTANCE:
            return index
    return None


def _ordered_unique(lines: Iterable[int]) -> Tuple[int, ...]:
    return tuple(dict.fromkeys(lines))
