import pytest

from change_flow.core.api_cases import (
    generate_test_cases,
    has_auth_changes,
    run_check,
    validate_response,
)
from change_flow.core.models import TargetType, TestTarget
from change_flow.healing.transport import HttpResponse


def _target(function, endpoint, file="src/api/users.js", method="GET"):
    return TestTarget(
        name=f"API Test: {function} in {file}",
        file=file,
        type=TargetType.API,
        function=function,
        endpoint=endpoint,
        method=method,
    )


def test_get_by_id_cases_substitute_ids():
    cases = generate_test_cases("GET", _target("getUserById", "/users/:id"))

    assert [(c.name, c.endpoint, c.expected_status) for c in cases] == [
        ("Get resource", "/users/:id", 200),
        ("Get by ID", "/users/1", 200),
        ("Get non-existent", "/users/999999", 404),
    ]


def test_post_cases_carry_payload():
    cases = generate_test_cases("post", _target("createUser", "/users", method="POST"))

    valid, invalid = cases
    assert valid.expected_status == 201
    assert valid.data["username"] == "testuser"
    assert invalid.data == {}
    assert invalid.checks == ("errorFormat", "hasValidationErrors")


def test_put_and_patch_share_update_cases():
    put_cases = generate_test_cases("PUT", _target("updateProduct", "/products/:id", file="src/api/products.js"))
    patch_cases = generate_test_cases("PATCH", _target("updateProduct", "/products/:id", file="src/api/products.js"))

    assert [c.name for c in put_cases] == [c.name for c in patch_cases] == ["Update valid", "Update non-existent"]
    assert put_cases[0].endpoint == "/products/1"
    assert put_cases[0].data["category"] == "test"


def test_delete_cases():
    cases = generate_test_cases("DELETE", _target("deleteItem", "/items/:id", file="src/api/items.js"))

    assert [(c.endpoint, c.expected_status) for c in cases] == [("/items/1", 204), ("/items/999999", 404)]


def test_auth_keyword_adds_unauthorized_case():
    cases = generate_test_cases("GET", _target("refreshToken", "/session", file="src/services/session.js"))

    assert cases[-1].name == "Unauthorized access"
    assert cases[-1].expected_status == 401
    assert cases[-1].headers == {}


def test_has_auth_changes_is_case_insensitive():
    assert has_auth_changes("verifyJWT", "src/api/x.js")
    assert has_auth_changes("list", "src/api/Permissions.js")
    assert not has_auth_changes("listItems", "src/api/items.js")


@pytest.mark.parametrize(
    "check, data, passed",
    [
        ("hasData", [], True),
        ("hasData", {}, False),
        ("hasData", {"a": 1}, True),
        ("hasId", {"_id": "x"}, True),
        ("hasId", [], False),
        ("correctFormat", [{"id": 1}], True),
        ("correctFormat", ["x"], False),
        ("errorFormat", {"message": "nope"}, True),
        ("dataUpdated", {"updatedAt": "2024-01-01"}, True),
        ("hasValidationErrors", {"errors": []}, True),
        ("dataMatches", None, False),
        ("somethingNew", None, True),
    ],
)
def test_run_check(check, data, passed):
    assert run_check(check, HttpResponse(status=200, data=data)).passed is passed


def test_validate_response_reports_status_mismatch():
    result = validate_response(HttpResponse(status=500, data={"error": "boom"}), 200, ["errorFormat"])

    assert result.success is False
    assert result.details[0].to_dict() == {"validation": "status", "passed": False, "expected": 200, "actual": 500}
    assert result.details[1].passed is True
