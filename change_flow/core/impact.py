"""
Impact tagging and endpoint inference.

All heuristics live in ordered rule tables so they can be read, tested and
swapped without touching the control flow. Path markers are plain substring
tests against the POSIX form of the path; name keywords are case-sensitive,
except for HTTP method inference which lower-cases the name first.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple

UI_TAG = "UI rendering"
API_TAG = "API endpoints"

UI_PATH_MARKERS = ("components/", "pages/")
API_PATH_MARKERS = ("api/", "services/")
STATE_PATH_MARKERS = ("store/", "redux/", "context/")
ROUTING_PATH_MARKERS = ("routes", "router")


@dataclass(frozen=True)
class ImpactRule:
    path_markers: Tuple[str, ...]
    tag: str
    # (name keywords, tag) pairs checked against every declaration name
    name_tags: Tuple[Tuple[Tuple[str, ...], str], ...] = ()

    def applies_to(self, path: str) -> bool:
        return any(marker in path for marker in self.path_markers)


IMPACT_RULES: Tuple[ImpactRule, ...] = (
    ImpactRule(
        UI_PATH_MARKERS,
        UI_TAG,
        ((("handle", "on"), "User interactions"),),
    ),
    ImpactRule(
        API_PATH_MARKERS,
        API_TAG,
        (
            (("get",), "GET requests"),
            (("post",), "POST requests"),
            (("put", "update"), "PUT requests"),
            (("delete",), "DELETE requests"),
        ),
    ),
    ImpactRule(STATE_PATH_MARKERS, "Application state"),
    ImpactRule(ROUTING_PATH_MARKERS, "Navigation"),
)

# Evaluated in order against the lower-cased declaration name; first match wins.
HTTP_METHOD_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("get", "fetch", "find"), "GET"),
    (("post", "create", "add"), "POST"),
    (("put", "update"), "PUT"),
    (("patch",), "PATCH"),
    (("delete", "remove"), "DELETE"),
)
DEFAULT_HTTP_METHOD = "GET"

ID_MARKERS = ("Id", "ById")


@dataclass(frozen=True)
class EndpointDescriptor:
    endpoint: str
    method: str


def normalize_path(path: str) -> str:
    return str(path).replace("\\", "/")


def is_ui_path(path: str) -> bool:
    normalized = normalize_path(path)
    return any(marker in normalized for marker in UI_PATH_MARKERS)


def is_api_path(path: str) -> bool:
    normalized = normalize_path(path)
    return any(marker in normalized for marker in API_PATH_MARKERS)


def classify_impact(path: str, names: Iterable[str]) -> List[str]:
    """
    Impact tags for one changed file, de-duplicated in first-occurrence order.

    ``names`` is typically a ChangeRecord; iterating it yields the declaration names.
    """
    normalized = normalize_path(path)
    names = list(names)
    tags: List[str] = []
    for rule in IMPACT_RULES:
        if not rule.applies_to(normalized):
            continue
        tags.append(rule.tag)
        for name in names:
            for keywords, tag in rule.name_tags:
                if any(keyword in name for keyword in keywords):
                    tags.append(tag)
    return list(dict.fromkeys(tags))


def derive_http_method(name: str) -> str:
    lowered = name.lower()
    for keywords, method in HTTP_METHOD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return method
    return DEFAULT_HTTP_METHOD


def derive_resource(path: str) -> str:
    """Last path segment of the file without its extension, e.g. ``api/users.js`` -> ``users``."""
    return PurePosixPath(normalize_path(path)).stem


def derive_endpoint(path: str, name: str) -> str:
    endpoint = f"/{derive_resource(path)}"
    if any(marker in name for marker in ID_MARKERS):
        endpoint = f"{endpoint}/:id"
    return endpoint


def describe_endpoint(path: str, name: str) -> Optional[EndpointDescriptor]:
    if not is_api_path(path):
        return None
    return EndpointDescriptor(endpoint=derive_endpoint(path, name), method=derive_http_method(name))


def describe_endpoints(path: str, names: Iterable[str]) -> Dict[str, EndpointDescriptor]:
    if not is_api_path(path):
        return {}
    return {name: describe_endpoint(path, name) for name in names}
