"""
Request case planning and response checks for API test targets.

Cases are plain data; issuing them is left to an HttpTransport. Checks operate
on anything exposing ``status`` and ``data`` attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .models import TestTarget

AUTH_KEYWORDS = ("auth", "token", "jwt", "session", "permission", "role")
EXISTING_ID = "1"
MISSING_ID = "999999"


@dataclass(frozen=True)
class APICase:
    name: str
    method: str
    endpoint: str
    expected_status: int
    checks: Tuple[str, ...] = ()
    data: Optional[Dict[str, Any]] = None
    # None keeps the transport's default headers; {} sends none at all
    headers: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "method": self.method,
            "endpoint": self.endpoint,
            "expectedStatus": self.expected_status,
            "validations": list(self.checks),
        }
        if self.data is not None:
            result["data"] = self.data
        if self.headers is not None:
            result["headers"] = self.headers
        return result


@dataclass
class CheckResult:
    validation: str
    passed: bool
    expected: Any = None
    actual: Any = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"validation": self.validation, "passed": self.passed}
        if not self.passed and self.expected is not None:
            result["expected"] = self.expected
            result["actual"] = self.actual
        return result


@dataclass
class ResponseValidation:
    success: bool = True
    details: List[CheckResult] = field(default_factory=list)

    def add(self, result: CheckResult) -> None:
        self.details.append(result)
        if not result.passed:
            self.success = False


def has_auth_changes(function: str, file: str) -> bool:
    function, file = function.lower(), file.lower()
    return any(keyword in function or keyword in file for keyword in AUTH_KEYWORDS)


def generate_test_data(function: str, file: str) -> Dict[str, Any]:
    base = {
        "name": "Test Item",
        "description": "Test Description",
        "active": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if "user" in function or "user" in file:
        return {"username": "testuser", "email": "test@example.com", "password": "Test123!", **base}
    if "product" in function or "product" in file:
        return {"name": "Test Product", "price": 99.99, "category": "test", "stock": 100, **base}
    return base


def generate_test_cases(method: str, target: TestTarget) -> List[APICase]:
    """Positive and negative request cases for one API target."""
    method = method.upper()
    function = target.function or ""
    endpoint = target.endpoint or "/"
    existing = endpoint.replace(":id", EXISTING_ID)
    missing = endpoint.replace(":id", MISSING_ID)
    cases: List[APICase] = []

    if method == "GET":
        cases.append(APICase("Get resource", method, endpoint, 200, ("hasData", "correctFormat")))
        if "Id" in function or ":id" in endpoint:
            cases.append(APICase("Get by ID", method, existing, 200, ("hasId", "correctFormat")))
            cases.append(APICase("Get non-existent", method, missing, 404, ("errorFormat",)))
    elif method == "POST":
        cases.append(
            APICase("Create valid", method, endpoint, 201, ("hasId", "dataMatches"),
                    data=generate_test_data(function, target.file))
        )
        cases.append(APICase("Create invalid", method, endpoint, 400, ("errorFormat", "hasValidationErrors"), data={}))
    elif method in ("PUT", "PATCH"):
        payload = generate_test_data(function, target.file)
        cases.append(APICase("Update valid", method, existing, 200, ("dataUpdated",), data=payload))
        cases.append(APICase("Update non-existent", method, missing, 404, ("errorFormat",), data=payload))
    elif method == "DELETE":
        cases.append(APICase("Delete existing", method, existing, 204))
        cases.append(APICase("Delete non-existent", method, missing, 404, ("errorFormat",)))

    if has_auth_changes(function, target.file):
        cases.append(APICase("Unauthorized access", method, endpoint, 401, ("errorFormat",), headers={}))
    return cases


def _has_data(data: Any) -> bool:
    if data is None:
        return False
    if isinstance(data, list):
        return True
    if isinstance(data, dict):
        return len(data) > 0
    return bool(data)


def _has_any(data: Any, *keys: str) -> bool:
    return isinstance(data, dict) and any(data.get(key) is not None for key in keys)


def _correct_format(data: Any) -> bool:
    if isinstance(data, list):
        return not data or isinstance(data[0], dict)
    return isinstance(data, dict)


CHECKS: Dict[str, Callable[[Any], bool]] = {
    "hasData": _has_data,
    "hasId": lambda data: _has_any(data, "id", "_id"),
    "correctFormat": _correct_format,
    "errorFormat": lambda data: _has_any(data, "error", "message"),
    "dataMatches": lambda data: data is not None,
    "dataUpdated": lambda data: _has_any(data, "updatedAt"),
    "hasValidationErrors": lambda data: _has_any(data, "errors", "validationErrors"),
}


def run_check(check: str, response: Any) -> CheckResult:
    """Unknown check names pass, so new names never fail older runners."""
    predicate = CHECKS.get(check)
    if predicate is None:
        return CheckResult(check, True)
    return CheckResult(check, bool(predicate(response.data)))


def validate_response(response: Any, expected_status: int, checks: Sequence[str] = ()) -> ResponseValidation:
    result = ResponseValidation()
    if response.status != expected_status:
        result.add(CheckResult("status", False, expected=expected_status, actual=response.status))
    else:
        result.add(CheckResult("status", True))
    for check in checks:
        result.add(run_check(check, response))
    return result
