"""
JSON artifacts written once per run. Every writer overwrites its target.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .impact import is_api_path, is_ui_path
from .models import ChangeAnalysis, TestTarget

JSON_INDENT = 2


def _write_json(path: Path, payload: Any) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=JSON_INDENT)
    logging.info(f"Wrote {path}")
    return path


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def build_test_target_index(analysis: ChangeAnalysis) -> Dict[str, List[str]]:
    """De-duplicated convenience indexes over a change analysis."""
    ui_paths: List[str] = []
    api_endpoints: List[str] = []
    impacted_areas: List[str] = []
    functions: List[str] = []
    for path, change in analysis.files.items():
        if is_ui_path(path):
            ui_paths.append(path)
        if is_api_path(path):
            api_endpoints.append(path)
        impacted_areas.extend(change.impact)
        functions.extend(change.functions)
    return {
        "uiPaths": _unique(ui_paths),
        "apiEndpoints": _unique(api_endpoints),
        "impactedAreas": _unique(impacted_areas),
        "specificFunctions": _unique(functions),
    }


def write_change_analysis(analysis: ChangeAnalysis, path: Path) -> Path:
    return _write_json(path, analysis.to_dict())


def load_change_analysis(path: Path) -> ChangeAnalysis:
    with open(path, "r", encoding="utf-8") as f:
        return ChangeAnalysis.from_dict(json.load(f))


def write_test_target_index(analysis: ChangeAnalysis, path: Path) -> Path:
    return _write_json(path, build_test_target_index(analysis))


def write_generated_targets(targets: Iterable[TestTarget], path: Path) -> Path:
    return _write_json(path, [target.to_dict() for target in targets])


def write_healing_report(report: Dict[str, Any], path: Path) -> Path:
    """``report`` is typically ``HealingLedger.to_dict()``."""
    return _write_json(path, report)
