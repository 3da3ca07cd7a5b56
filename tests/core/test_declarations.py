"""
Tests for the tree-sitter declaration index and extractor.
"""

import pytest

from change_flow.core.errors import ParseError
from change_flow.core.models import DeclarationKind
from change_flow.core.treesitter import (
    LANGUAGE_LOADERS,
    DeclarationExtractor,
    extract_declarations,
    get_language,
    parse_source,
)


def _index(source: str, language_id: str = "javascript"):
    tree = parse_source(source, language_id)
    return {d.name: d for d in extract_declarations(tree, source.encode("utf-8"))}


def test_collects_functions_arrows_methods_in_source_order(sample_js_source):
    extractor = DeclarationExtractor()
    declarations = extractor.extract_from_source(sample_js_source, "src/components/UserCard.js")

    assert [d.name for d in declarations] == [
        "getUser",
        "handleClick",
        "UserCard.render",
        "UserCard.onSelect",
        "userService.fetchAll",
        "userService.remove",
    ]


def test_line_spans_and_kinds(sample_js_source):
    index = _index(sample_js_source)

    assert (index["getUser"].start_line, index["getUser"].end_line) == (1, 3)
    assert index["getUser"].kind is DeclarationKind.FUNCTION
    assert (index["handleClick"].start_line, index["handleClick"].end_line) == (5, 7)
    assert index["handleClick"].kind is DeclarationKind.ARROW
    assert (index["UserCard.render"].start_line, index["UserCard.render"].end_line) == (10, 12)
    assert index["UserCard.render"].kind is DeclarationKind.METHOD
    assert index["UserCard.onSelect"].kind is DeclarationKind.METHOD
    assert (index["userService.fetchAll"].start_line, index["userService.fetchAll"].end_line) == (20, 22)


def test_nested_functions_are_recorded_independently():
    source = """\
function outer() {
  const inner = () => {
    return 1;
  };
  return inner();
}
"""
    index = _index(source)

    assert (index["outer"].start_line, index["outer"].end_line) == (1, 6)
    assert (index["inner"].start_line, index["inner"].end_line) == (2, 4)


def test_anonymous_default_export_and_anonymous_class():
    source = """\
export default function () {
  return 1;
}

const Widget = class {
  render() {
    return null;
  }
};
"""
    index = _index(source)

    assert "anonymous" in index
    assert index["anonymous"].kind is DeclarationKind.FUNCTION
    assert "Class.render" in index


def test_function_expression_bound_to_variable():
    index = _index("const save = function persist(data) {\n  return data;\n};\n")

    assert index["save"].kind is DeclarationKind.ARROW
    assert "persist" not in index


def test_typescript_class_and_exported_function():
    source = """\
export async function loadUser(id: number): Promise<User> {
  return api.get(id);
}

class Store {
  private count: number = 0;

  increment(): void {
    this.count++;
  }
}
"""
    index = _index(source, "typescript")

    assert set(index) == {"loadUser", "Store.increment"}
    assert (index["Store.increment"].start_line, index["Store.increment"].end_line) == (8, 10)


def test_tsx_component():
    source = """\
export const Banner = ({ title }: { title: string }) => {
  return <h1>{title}</h1>;
};
"""
    index = _index(source, "tsx")

    assert (index["Banner"].start_line, index["Banner"].end_line) == (1, 3)


def test_syntax_errors_raise_parse_error():
    extractor = DeclarationExtractor()

    with pytest.raises(ParseError) as exc_info:
        extractor.extract_from_source("function broken( {\n", "src/broken.js")
    assert exc_info.value.file_path == "src/broken.js"


def test_unsupported_extension_raises_parse_error():
    with pytest.raises(ParseError):
        DeclarationExtractor().extract_from_source("x = 1", "script.py")


def test_extract_from_file_and_metrics(tmp_path):
    path = tmp_path / "api" / "users.js"
    path.parent.mkdir()
    path.write_text("export const getUsers = async () => {\n  return [];\n};\n", encoding="utf-8")
    extractor = DeclarationExtractor()

    declarations = extractor.extract_from_file(path)

    assert [d.name for d in declarations] == ["getUsers"]
    assert extractor.performance_metrics["total_files"] == 1
    assert extractor.performance_metrics["total_declarations"] == 1


def test_missing_file_raises_parse_error(tmp_path):
    with pytest.raises(ParseError):
        DeclarationExtractor().extract_from_file(tmp_path / "nope.js")


def test_jsx_in_plain_js_file_is_indexed():
    source = "export function Badge({ label }) {\n  return <span className=\"badge\">{label}</span>;\n}\n"

    declarations = DeclarationExtractor().extract_from_source(source, "src/components/Badge.js")

    assert [d.name for d in declarations] == ["Badge"]


def test_unknown_language_id_is_rejected():
    assert set(LANGUAGE_LOADERS) == {"javascript", "typescript", "tsx"}
    with pytest.raises(ValueError):
        get_language("python")
