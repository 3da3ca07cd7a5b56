"""
Synthesis of UI, visual and API test targets from a tagged change map.

Generation is a pure function of its input: the same change map always yields
the same target list, ordered by file then by declaration.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .impact import API_TAG, UI_TAG, derive_endpoint, derive_http_method, normalize_path
from .models import (
    Action,
    ChangeType,
    FileChange,
    LineChangeSet,
    SelectorDescriptor,
    TargetArea,
    TargetType,
    TestTarget,
    Validation,
)

DEFAULT_ROLE = "button"
ROLE_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("button", "click"), "button"),
    (("input", "field"), "textbox"),
    (("select", "dropdown"), "combobox"),
    (("check",), "checkbox"),
    (("radio",), "radio"),
    (("link",), "link"),
)

ACTION_RULES: Tuple[Tuple[Tuple[str, ...], Action], ...] = (
    (("handle", "on"), Action(type="click", verify="response")),
    (("validate", "check"), Action(type="input", value="test", verify="validation")),
    (("submit", "save"), Action(type="submit", verify="success")),
)

VALIDATION_RULES: Tuple[Tuple[Tuple[str, ...], Validation], ...] = (
    (("get",), Validation(status=200, has_data=True)),
    (("create", "post"), Validation(status=201, has_id=True)),
    (("update", "put"), Validation(status=200, data_updated=True)),
    (("delete",), Validation(status=204)),
)

# Fixed line window; a positional stand-in for "auth logic near the top of the file".
DEFAULT_AUTH_CHECK_LINES = (10, 20)
AUTH_CHECK = Validation(custom="auth-check")

DEFAULT_VISUAL_LINE_THRESHOLD = 10
DEFAULT_VISUAL_COMPONENT_SPAN = 50
VISUAL_DIFF_THRESHOLD = 0.1

CROSS_BOUNDARY_RULES: Tuple[Tuple[str, str, str, str], ...] = (
    ("api/", "components/", "api-ui", "api->component"),
    ("store/", "components/", "state-ui", "state->component"),
)


@dataclass(frozen=True)
class CrossBoundaryChange:
    source: str
    target: str
    type: str
    path: str

    def to_dict(self):
        return {"source": self.source, "target": self.target, "type": self.type, "path": self.path}


def component_name(file: str) -> str:
    return PurePosixPath(normalize_path(file)).stem


def humanize(name: str) -> str:
    return re.sub(r"([A-Z])", r" \1", name).strip()


def infer_role(function: str) -> str:
    for keywords, role in ROLE_RULES:
        if any(keyword in function for keyword in keywords):
            return role
    return DEFAULT_ROLE


def infer_actions(function: str) -> Tuple[Action, ...]:
    return tuple(
        action for keywords, action in ACTION_RULES
        if any(keyword in function for keyword in keywords)
    )


def build_selectors(file: str, function: str) -> SelectorDescriptor:
    component = component_name(file)
    return SelectorDescriptor(
        test_id=f"{component}-{function}".lower(),
        css=f".{component}",
        role=infer_role(function),
        description=f"{component} {function}",
        text=humanize(function),
        partial_text=component,
    )


def build_validations(
    function: str,
    lines: LineChangeSet,
    auth_check_lines: Tuple[int, int] = DEFAULT_AUTH_CHECK_LINES,
) -> Tuple[Validation, ...]:
    validations = [
        validation for keywords, validation in VALIDATION_RULES
        if any(keyword in function for keyword in keywords)
    ]
    low, high = auth_check_lines
    if any(low <= line <= high for line in lines.modified):
        validations.append(AUTH_CHECK)
    return tuple(validations)


def calculate_impact_area(lines: LineChangeSet, component_span: int = DEFAULT_VISUAL_COMPONENT_SPAN) -> Optional[TargetArea]:
    changed = lines.modified + lines.added
    if not changed:
        return None
    start, end = min(changed), max(changed)
    scope = "component" if end - start > component_span else "partial"
    return TargetArea(start_line=start, end_line=end, scope=scope)


def derive_test_url(file: str, ui_base_url: str) -> str:
    base = ui_base_url.rstrip("/")
    normalized = normalize_path(file)
    if "pages/" in normalized:
        return f"{base}/{component_name(normalized)}"
    if "components/" in normalized:
        return f"{base}/component-test"
    return base


def detect_cross_boundary_changes(files: Iterable[str]) -> List[CrossBoundaryChange]:
    """Ordered (source, target) pairs where a change in one layer can surface in another."""
    paths = [normalize_path(path) for path in files]
    changes: List[CrossBoundaryChange] = []
    for source in paths:
        for target in paths:
            if source == target:
                continue
            for source_marker, target_marker, change_type, flow in CROSS_BOUNDARY_RULES:
                if source_marker in source and target_marker in target:
                    changes.append(CrossBoundaryChange(source, target, change_type, flow))
    return changes


class TestTargetGenerator:
    """Turns a per-file change map into an ordered list of test targets."""

    __test__ = False

    def __init__(
        self,
        auth_check_lines: Sequence[int] = DEFAULT_AUTH_CHECK_LINES,
        visual_line_threshold: int = DEFAULT_VISUAL_LINE_THRESHOLD,
        visual_component_span: int = DEFAULT_VISUAL_COMPONENT_SPAN,
        ui_base_url: Optional[str] = None,
    ):
        low, high = auth_check_lines
        self.auth_check_lines = (min(low, high), max(low, high))
        self.visual_line_threshold = visual_line_threshold
        self.visual_component_span = visual_component_span
        self.ui_base_url = ui_base_url

    @classmethod
    def from_config(cls, config) -> "TestTargetGenerator":
        return cls(
            auth_check_lines=config.auth_window(),
            visual_line_threshold=config.visual_line_threshold,
            visual_component_span=config.visual_component_span,
            ui_base_url=config.ui_base_url,
        )

    def url_for(self, file: str) -> Optional[str]:
        if self.ui_base_url is None:
            return None
        return derive_test_url(file, self.ui_base_url)

    def generate(self, files: Mapping[str, FileChange]) -> List[TestTarget]:
        targets: List[TestTarget] = []
        for file, change in files.items():
            if UI_TAG in change.impact:
                targets.extend(self.generate_ui_targets(file, change))
            if API_TAG in change.impact:
                targets.extend(self.generate_api_targets(file, change))
        return targets

    def generate_ui_targets(self, file: str, change: FileChange) -> List[TestTarget]:
        targets: List[TestTarget] = []
        for function, change_type in change.functions.items():
            if change_type is ChangeType.DELETED:
                continue
            targets.append(
                TestTarget(
                    name=f"UI Test: {function} in {file}",
                    file=file,
                    type=TargetType.UI,
                    function=function,
                    change_type=change_type,
                    target_lines=change.lines.modified,
                    selectors=build_selectors(file, function),
                    actions=infer_actions(function),
                    url=self.url_for(file),
                )
            )

        lines = change.lines
        if len(lines.modified) > self.visual_line_threshold or len(lines.added) > self.visual_line_threshold:
            targets.append(
                TestTarget(
                    name=f"Visual Test: {file}",
                    file=file,
                    type=TargetType.VISUAL,
                    target_area=calculate_impact_area(lines, self.visual_component_span),
                    threshold=VISUAL_DIFF_THRESHOLD,
                    url=self.url_for(file),
                )
            )
        return targets

    def generate_api_targets(self, file: str, change: FileChange) -> List[TestTarget]:
        targets: List[TestTarget] = []
        for function, change_type in change.functions.items():
            if change_type is ChangeType.DELETED:
                continue
            targets.append(
                TestTarget(
                    name=f"API Test: {function} in {file}",
                    file=file,
                    type=TargetType.API,
                    function=function,
                    change_type=change_type,
                    target_lines=change.lines.modified,
                    endpoint=derive_endpoint(file, function),
                    method=derive_http_method(function),
                    validations=build_validations(function, change.lines, self.auth_check_lines),
                )
            )
        return targets
