import json

from change_flow.core.artifacts import (
    build_test_target_index,
    load_change_analysis,
    write_change_analysis,
    write_generated_targets,
    write_healing_report,
    write_test_target_index,
)
from change_flow.core.models import (
    ChangeAnalysis,
    ChangeSummary,
    ChangeType,
    FileChange,
    Hunk,
    LineChangeSet,
)
from change_flow.core.target_generator import TestTargetGenerator
from change_flow.healing.ledger import HealingLedger


def _analysis():
    files = {
        "src/components/Nav.jsx": FileChange(
            file="src/components/Nav.jsx",
            lines=LineChangeSet(added=(3,), modified=(8,)),
            functions={"handleToggle": ChangeType.MODIFIED},
            hunks=[Hunk(start=3, content=["+  const open = true;"])],
            impact=["UI rendering", "User interactions"],
        ),
        "src/pages/Home.jsx": FileChange(
            file="src/pages/Home.jsx",
            functions={"handleToggle": ChangeType.ADDED},
            impact=["UI rendering", "User interactions"],
        ),
        "src/services/api/orders.js": FileChange(
            file="src/services/api/orders.js",
            functions={"getOrders": ChangeType.ADDED},
            impact=["API endpoints", "GET requests"],
        ),
    }
    return ChangeAnalysis(files=files, summary=ChangeSummary(added=2, modified=1, total_changes=3))


def test_index_is_deduplicated_in_first_seen_order():
    index = build_test_target_index(_analysis())

    assert index == {
        "uiPaths": ["src/components/Nav.jsx", "src/pages/Home.jsx"],
        "apiEndpoints": ["src/services/api/orders.js"],
        "impactedAreas": ["UI rendering", "User interactions", "API endpoints", "GET requests"],
        "specificFunctions": ["handleToggle", "getOrders"],
    }


def test_change_analysis_round_trips_through_disk(tmp_path):
    path = tmp_path / "out" / "change-analysis.json"

    write_change_analysis(_analysis(), path)
    data = json.loads(path.read_text())
    loaded = load_change_analysis(path)

    assert data["summary"] == {"added": 2, "modified": 1, "deleted": 0, "totalChanges": 3}
    assert data["files"]["src/components/Nav.jsx"]["hunks"] == [
        {"start": 3, "end": 4, "content": ["+  const open = true;"]}
    ]
    assert loaded.files["src/components/Nav.jsx"].lines.modified == (8,)
    assert loaded.files["src/pages/Home.jsx"].functions == {"handleToggle": ChangeType.ADDED}
    assert loaded.fallback is False


def test_writers_overwrite(tmp_path):
    path = tmp_path / "test-targets.json"
    path.write_text("stale")

    write_test_target_index(_analysis(), path)

    assert json.loads(path.read_text())["apiEndpoints"] == ["src/services/api/orders.js"]


def test_generated_targets_and_healing_report(tmp_path):
    analysis = _analysis()
    targets = TestTargetGenerator().generate(analysis.files)
    ledger = HealingLedger()
    ledger.record(2, True, endpoint="/orders", strategy="api-prefix")

    write_generated_targets(targets, tmp_path / "generated-targets.json")
    write_healing_report(ledger.to_dict(), tmp_path / "healing-stats.json")

    generated = json.loads((tmp_path / "generated-targets.json").read_text())
    report = json.loads((tmp_path / "healing-stats.json").read_text())
    assert [t["type"] for t in generated] == ["ui", "ui", "api"]
    assert report["endpoints"]["byTier"] == {"2": 1}
    assert report["elements"]["total"] == 0
