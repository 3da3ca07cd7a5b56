"""
Source-control collaborator: changed files and per-file unified diffs.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol, Union

from .errors import AnalysisUnavailable


@dataclass(frozen=True)
class DiffStat:
    file: str
    insertions: int = 0
    deletions: int = 0
    binary: bool = False


class SourceControl(Protocol):
    def changed_files(self, base: str, head: str) -> List[DiffStat]:
        ...

    def file_diff(self, base: str, head: str, path: str) -> str:
        ...


def parse_numstat(output: str) -> List[DiffStat]:
    """Parse ``git diff --numstat`` output. Binary files report ``-`` counts."""
    stats: List[DiffStat] = []
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) != 3:
            continue
        insertions, deletions, path = parts
        binary = insertions == "-" or deletions == "-"
        stats.append(
            DiffStat(
                file=path.strip(),
                insertions=0 if binary else int(insertions),
                deletions=0 if binary else int(deletions),
                binary=binary,
            )
        )
    return stats


class GitSourceControl:
    """SourceControl over the ``git`` executable, run inside ``project_root``."""

    def __init__(self, project_root: Union[str, Path] = "."):
        self.project_root = Path(project_root)

    def _run(self, args: List[str]) -> str:
        cmd = ["git", *args]
        try:
            # Non-UTF-8 bytes in a changed file decode to U+FFFD
            return subprocess.check_output(
                cmd,
                cwd=self.project_root,
                encoding="utf-8",
                errors="replace",
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise AnalysisUnavailable(f"git executable or project root not found: {e}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            logging.debug(f"{' '.join(cmd)} failed: {stderr}")
            raise AnalysisUnavailable(f"{' '.join(cmd)} exited with {e.returncode}: {stderr}") from e

    # --no-renames: a rename is reported as a deletion plus an addition, so every
    # path in the output is a plain path that exists on one side of the diff.
    def changed_files(self, base: str, head: str) -> List[DiffStat]:
        return parse_numstat(self._run(["diff", "--numstat", "--no-renames", base, head]))

    def file_diff(self, base: str, head: str, path: str) -> str:
        return self._run(["diff", "--no-renames", base, head, "--", path])
