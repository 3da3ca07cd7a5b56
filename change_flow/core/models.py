"""
Core data models for change analysis, test targets and healing attempts.

The analysis models are pure data; JSON shapes follow the persisted
``change-analysis.json`` / ``test-targets.json`` artifacts, which use camelCase keys.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    # Only produced when no history is available
    UNKNOWN = "unknown"


class DeclarationKind(str, Enum):
    FUNCTION = "function"
    ARROW = "arrow-bound"
    METHOD = "method"


class TargetType(str, Enum):
    UI = "ui"
    API = "api"
    VISUAL = "visual"


@dataclass(frozen=True)
class LineChangeSet:
    """Added, deleted and modified 1-based line numbers of one file."""
    added: Tuple[int, ...] = ()
    deleted: Tuple[int, ...] = ()
    modified: Tuple[int, ...] = ()

    def changed_lines(self) -> Tuple[int, ...]:
        return self.added + self.modified + self.deleted

    def is_empty(self) -> bool:
        return not (self.added or self.deleted or self.modified)

    def to_dict(self) -> Dict[str, List[int]]:
        return {
            "added": list(self.added),
            "deleted": list(self.deleted),
            "modified": list(self.modified),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineChangeSet":
        return cls(
            added=tuple(data.get("added", ())),
            deleted=tuple(data.get("deleted", ())),
            modified=tuple(data.get("modified", ())),
        )


@dataclass
class Hunk:
    start: int
    content: List[str] = field(default_factory=list)

    @property
    def end(self) -> int:
        return self.start + len(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "content": list(self.content)}


@dataclass
class ParsedDiff:
    lines: LineChangeSet = field(default_factory=LineChangeSet)
    hunks: List[Hunk] = field(default_factory=list)
    insertions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class Declaration:
    """A function-like construct and the lines it spans."""
    name: str
    start_line: int
    end_line: int
    kind: DeclarationKind = DeclarationKind.FUNCTION

    def __post_init__(self):
        if self.start_line > self.end_line:
            raise ValueError(
                f"Declaration {self.name} starts after it ends ({self.start_line} > {self.end_line})"
            )

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


# Declaration name -> classification. Always derived, never stored on its own.
ChangeRecord = Dict[str, ChangeType]


@dataclass
class FileChange:
    file: str
    lines: LineChangeSet = field(default_factory=LineChangeSet)
    functions: ChangeRecord = field(default_factory=dict)
    hunks: List[Hunk] = field(default_factory=list)
    impact: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "file": self.file,
            "lines": self.lines.to_dict(),
            "functions": {name: change.value for name, change in self.functions.items()},
            "hunks": [hunk.to_dict() for hunk in self.hunks],
            "impact": list(self.impact),
        }
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileChange":
        return cls(
            file=data["file"],
            lines=LineChangeSet.from_dict(data.get("lines", {})),
            functions={name: ChangeType(value) for name, value in data.get("functions", {}).items()},
            hunks=[Hunk(start=h["start"], content=list(h.get("content", []))) for h in data.get("hunks", [])],
            impact=list(data.get("impact", [])),
            error=data.get("error"),
        )


@dataclass
class ChangeSummary:
    added: int = 0
    modified: int = 0
    deleted: int = 0
    total_changes: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "added": self.added,
            "modified": self.modified,
            "deleted": self.deleted,
            "totalChanges": self.total_changes,
        }


@dataclass
class ChangeAnalysis:
    files: Dict[str, FileChange] = field(default_factory=dict)
    summary: ChangeSummary = field(default_factory=ChangeSummary)
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": {path: change.to_dict() for path, change in self.files.items()},
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChangeAnalysis":
        summary = data.get("summary", {})
        files = {path: FileChange.from_dict(change) for path, change in data.get("files", {}).items()}
        return cls(
            files=files,
            summary=ChangeSummary(
                added=summary.get("added", 0),
                modified=summary.get("modified", 0),
                deleted=summary.get("deleted", 0),
                total_changes=summary.get("totalChanges", 0),
            ),
            fallback=any(
                change is ChangeType.UNKNOWN for fc in files.values() for change in fc.functions.values()
            ),
        )


_SELECTOR_KEYS = (
    ("test_id", "testId"),
    ("id", "id"),
    ("css", "css"),
    ("xpath", "xpath"),
    ("text", "text"),
    ("partial_text", "partialText"),
    ("role", "role"),
    ("name", "name"),
    ("description", "description"),
)


@dataclass(frozen=True)
class SelectorDescriptor:
    """Optional locator hints for one UI element; any subset may be present."""
    test_id: Optional[str] = None
    id: Optional[str] = None
    css: Optional[str] = None
    xpath: Optional[str] = None
    text: Optional[str] = None
    partial_text: Optional[str] = None
    role: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {
            key: getattr(self, attr)
            for attr, key in _SELECTOR_KEYS
            if getattr(self, attr) is not None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectorDescriptor":
        return cls(**{attr: data.get(key) for attr, key in _SELECTOR_KEYS})


@dataclass(frozen=True)
class Action:
    type: str
    verify: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"type": self.type}
        if self.value is not None:
            data["value"] = self.value
        if self.verify is not None:
            data["verify"] = self.verify
        return data


@dataclass(frozen=True)
class Validation:
    status: Optional[int] = None
    has_data: bool = False
    has_id: bool = False
    data_updated: bool = False
    custom: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.status is not None:
            data["status"] = self.status
        if self.has_data:
            data["hasData"] = True
        if self.has_id:
            data["hasId"] = True
        if self.data_updated:
            data["dataUpdated"] = True
        if self.custom:
            data["customValidation"] = self.custom
        return data


@dataclass(frozen=True)
class TargetArea:
    start_line: int
    end_line: int
    scope: str

    def to_dict(self) -> Dict[str, Any]:
        return {"startLine": self.start_line, "endLine": self.end_line, "scope": self.scope}


@dataclass(frozen=True)
class TestTarget:
    name: str
    file: str
    type: TargetType
    function: Optional[str] = None
    change_type: Optional[ChangeType] = None
    target_lines: Tuple[int, ...] = ()
    selectors: Optional[SelectorDescriptor] = None
    actions: Tuple[Action, ...] = ()
    endpoint: Optional[str] = None
    method: Optional[str] = None
    validations: Tuple[Validation, ...] = ()
    target_area: Optional[TargetArea] = None
    threshold: Optional[float] = None
    url: Optional[str] = None

    # Not a pytest test class despite the name
    __test__ = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "file": self.file, "type": self.type.value}
        if self.function is not None:
            data["function"] = self.function
        if self.change_type is not None:
            data["changeType"] = self.change_type.value
        if self.type is not TargetType.VISUAL:
            data["targetLines"] = list(self.target_lines)
        if self.selectors is not None:
            data["selectors"] = self.selectors.to_dict()
        if self.type is TargetType.UI:
            data["actions"] = [action.to_dict() for action in self.actions]
        if self.endpoint is not None:
            data["endpoint"] = self.endpoint
        if self.method is not None:
            data["method"] = self.method
        if self.type is TargetType.API:
            data["validations"] = [validation.to_dict() for validation in self.validations]
        if self.target_area is not None:
            data["targetArea"] = self.target_area.to_dict()
        if self.threshold is not None:
            data["threshold"] = self.threshold
        if self.url is not None:
            data["url"] = self.url
        return data


@dataclass(frozen=True)
class HealingAttempt:
    """One resolution outcome. ``tier`` is 1-based, or the literal "failed"."""
    tier: Union[int, str]
    success: bool
    timestamp: float
    selectors: Optional[SelectorDescriptor] = None
    endpoint: Optional[str] = None
    strategy: Optional[str] = None

    @property
    def kind(self) -> str:
        return "endpoint" if self.endpoint is not None else "element"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"tier": self.tier, "success": self.success, "timestamp": self.timestamp}
        if self.selectors is not None:
            data["selectors"] = self.selectors.to_dict()
        if self.endpoint is not None:
            data["endpoint"] = self.endpoint
        if self.strategy is not None:
            data["strategy"] = self.strategy
        return data
