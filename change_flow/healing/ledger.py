"""
Append-only record of resolution attempts for one run.

Appends are lock-guarded so concurrent resolvers never lose an update; all
statistics are computed from the log on read.
"""

import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.artifacts import write_healing_report
from ..core.config import ChangeFlowConfig
from ..core.models import HealingAttempt, SelectorDescriptor

FAILED = "failed"

TIER_NAMES: Dict[str, Dict[Union[int, str], str]] = {
    "element": {
        1: "ID/TestID",
        2: "CSS",
        3: "XPath",
        4: "Text",
        5: "Visual",
        6: "AI Fallback",
        FAILED: "Failed",
    },
    "endpoint": {
        1: "Exact",
        2: "API prefix",
        3: "v1",
        4: "v2",
        5: "No trailing slash",
        6: "Pluralized",
        FAILED: "Failed",
    },
}


@dataclass
class HealingStats:
    total: int = 0
    successful: int = 0
    # Successes at any tier other than the first
    healed: int = 0
    success_rate: float = 0.0
    by_tier: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "healed": self.healed,
            "successRate": self.success_rate,
            "byTier": dict(self.by_tier),
        }


class HealingLedger:
    def __init__(self):
        self._attempts: List[HealingAttempt] = []
        self._lock = threading.Lock()

    def record(
        self,
        tier: Union[int, str],
        success: bool,
        selectors: Optional[SelectorDescriptor] = None,
        endpoint: Optional[str] = None,
        strategy: Optional[str] = None,
    ) -> HealingAttempt:
        attempt = HealingAttempt(
            tier=tier,
            success=success,
            timestamp=time.time(),
            selectors=selectors,
            endpoint=endpoint,
            strategy=strategy,
        )
        with self._lock:
            self._attempts.append(attempt)
        return attempt

    def attempts(self, kind: Optional[str] = None) -> List[HealingAttempt]:
        with self._lock:
            snapshot = list(self._attempts)
        if kind is None:
            return snapshot
        return [attempt for attempt in snapshot if attempt.kind == kind]

    def stats(self, kind: Optional[str] = None) -> HealingStats:
        attempts = self.attempts(kind)
        total = len(attempts)
        successful = sum(1 for attempt in attempts if attempt.success)
        healed = sum(1 for attempt in attempts if attempt.success and attempt.tier != 1)
        by_tier = Counter(str(attempt.tier) for attempt in attempts)
        return HealingStats(
            total=total,
            successful=successful,
            healed=healed,
            success_rate=round(successful / total * 100, 2) if total else 0.0,
            by_tier=dict(sorted(by_tier.items())),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": self.stats("element").to_dict(),
            "endpoints": self.stats("endpoint").to_dict(),
            "attempts": [attempt.to_dict() for attempt in self.attempts()],
        }

    def save(self, config: ChangeFlowConfig) -> Path:
        """Write the healing report to the configured output directory."""
        return write_healing_report(self.to_dict(), config.healing_report_path())

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)
