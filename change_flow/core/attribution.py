"""Per-declaration change classification."""

from __future__ import annotations

from typing import Iterable, Optional

from .models import ChangeRecord, ChangeType, Declaration, LineChangeSet


def classify_declaration(declaration: Declaration, lines: LineChangeSet) -> Optional[ChangeType]:
    """
    Classify one declaration against a file's line changes.

    The first changed line inside the span decides that the declaration is
    classified at all; the class itself is ``deleted`` if any deleted line falls
    in the span, otherwise ``added`` if any added line does, otherwise ``modified``.
    Returns None when no changed line falls inside the span.
    """
    for line in lines.changed_lines():
        if not declaration.contains(line):
            continue
        if any(declaration.contains(deleted) for deleted in lines.deleted):
            return ChangeType.DELETED
        if any(declaration.contains(added) for added in lines.added):
            return ChangeType.ADDED
        return ChangeType.MODIFIED
    return None


def attribute_changes(declarations: Iterable[Declaration], lines: LineChangeSet) -> ChangeRecord:
    record: ChangeRecord = {}
    if lines.is_empty():
        return record
    for declaration in declarations:
        change = classify_declaration(declaration, lines)
        if change is not None:
            record[declaration.name] = change
    return record
