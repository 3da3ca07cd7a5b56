from change_flow.core.attribution import attribute_changes, classify_declaration
from change_flow.core.models import ChangeType, Declaration, LineChangeSet


def test_modified_line_inside_function():
    get_user = Declaration("getUser", 5, 9)
    lines = LineChangeSet(modified=(7,))

    assert attribute_changes([get_user], lines) == {"getUser": ChangeType.MODIFIED}


def test_declarations_without_changed_lines_are_omitted():
    declarations = [Declaration("getUser", 5, 9), Declaration("listUsers", 12, 20)]
    lines = LineChangeSet(added=(15,))

    assert attribute_changes(declarations, lines) == {"listUsers": ChangeType.ADDED}


def test_deleted_line_wins_over_added_and_modified():
    declaration = Declaration("save", 1, 10)
    lines = LineChangeSet(added=(2,), modified=(3,), deleted=(8,))

    assert classify_declaration(declaration, lines) is ChangeType.DELETED


def test_added_wins_over_modified():
    declaration = Declaration("save", 1, 10)
    lines = LineChangeSet(added=(9,), modified=(3,))

    assert classify_declaration(declaration, lines) is ChangeType.ADDED


def test_nested_declarations_are_all_classified():
    outer = Declaration("outer", 1, 20)
    inner = Declaration("inner", 5, 8)
    lines = LineChangeSet(modified=(6,))

    assert attribute_changes([outer, inner], lines) == {
        "outer": ChangeType.MODIFIED,
        "inner": ChangeType.MODIFIED,
    }


def test_empty_change_set_yields_empty_record():
    assert attribute_changes([Declaration("a", 1, 3)], LineChangeSet()) == {}


def test_attribution_is_idempotent():
    declarations = [Declaration("a", 1, 4), Declaration("b", 6, 12), Declaration("c", 14, 15)]
    lines = LineChangeSet(added=(2,), deleted=(7,), modified=(11,))

    first = attribute_changes(declarations, lines)
    second = attribute_changes(declarations, lines)

    assert first == second
    assert list(first) == list(second)
    assert set(first.values()) <= {ChangeType.ADDED, ChangeType.MODIFIED, ChangeType.DELETED}


def test_duplicate_names_keep_first_position_last_classification():
    declarations = [
        Declaration("render", 1, 3),
        Declaration("other", 5, 6),
        Declaration("render", 10, 12),
    ]
    lines = LineChangeSet(added=(2,), modified=(5, 11))

    record = attribute_changes(declarations, lines)

    assert list(record) == ["render", "other"]
    assert record["render"] is ChangeType.MODIFIED
