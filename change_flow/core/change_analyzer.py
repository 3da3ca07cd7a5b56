"""
Change analysis pipeline.

Turns the diff between two revisions into a per-file, per-declaration change map:
diff parse -> declaration index -> attribution -> impact tags. Files are
independent, so they may be analysed on a thread pool; results keep the order
in which source control reported them.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .attribution import attribute_changes
from .config import ChangeFlowConfig
from .diff_parser import parse_unified_diff
from .errors import AnalysisUnavailable, DiffParseError, ParseError
from .git_source import DiffStat, GitSourceControl, SourceControl
from .impact import classify_impact, normalize_path
from .models import ChangeAnalysis, ChangeSummary, ChangeType, FileChange, ParsedDiff
from .treesitter import DeclarationExtractor


class ChangeAnalyzer:
    def __init__(
        self,
        config: ChangeFlowConfig,
        source_control: Optional[SourceControl] = None,
        extractor: Optional[DeclarationExtractor] = None,
    ):
        self.config = config
        self.root = config.root()
        self.source_control = source_control or GitSourceControl(self.root)
        self.extractor = extractor or DeclarationExtractor()

    def is_testable_file(self, path: str) -> bool:
        normalized = normalize_path(path)
        return (
            any(normalized.endswith(ext) for ext in self.config.testable_extensions)
            and not any(excluded in normalized for excluded in self.config.excluded_paths)
        )

    def detect_code_changes(self) -> ChangeAnalysis:
        """
        Analyse ``base_ref..head_ref`` under the configured project root.

        Falls back to a history-free scan when source control is unavailable.

        Raises:
            AnalysisUnavailable: neither history nor the project root could be read.
        """
        base, head = self.config.base_ref, self.config.head_ref
        logging.info(f"Analyzing changes {base}..{head} in {self.root}")
        try:
            stats = self.source_control.changed_files(base, head)
            candidates = [
                stat for stat in stats
                if self.is_testable_file(stat.file) and (self.root / stat.file).is_file()
            ]
            logging.info(f"{len(candidates)} of {len(stats)} changed files are testable")
            changes = self._map_files(self._analyze_stat, candidates)
        except AnalysisUnavailable as e:
            logging.warning(f"Source control history unavailable ({e}); falling back to file system analysis")
            return self.fallback_analysis()

        analysis = ChangeAnalysis()
        for stat, change in zip(candidates, changes):
            analysis.files[stat.file] = change
            self._count(analysis.summary, stat)
        logging.info(f"Analysis complete: {analysis.summary.total_changes} files analyzed")
        return analysis

    def analyze_file(self, path: str, diff_text: str) -> FileChange:
        """Analyse one file given its unified diff. Failures are recorded, never raised."""
        change = FileChange(file=path)
        try:
            parsed = parse_unified_diff(diff_text)
        except DiffParseError as e:
            logging.warning(f"Unreadable diff for {path}: {e}")
            change.error = f"diff: {e}"
            parsed = ParsedDiff()
        change.lines = parsed.lines
        change.hunks = parsed.hunks

        try:
            declarations = self.extractor.extract_from_file(self.root / path)
        except ParseError as e:
            logging.warning(f"No syntax tree for {path}: {e}")
            change.error = f"parse: {e}"
            declarations = []

        change.functions = attribute_changes(declarations, change.lines)
        change.impact = classify_impact(path, change.functions)
        return change

    def fallback_analysis(self) -> ChangeAnalysis:
        """Treat every testable file matched by ``fallback_globs`` as modified."""
        if not self.root.is_dir():
            raise AnalysisUnavailable(f"Project root {self.root} does not exist")

        files = self._fallback_files()
        analysis = ChangeAnalysis(fallback=True)
        analysis.summary.total_changes = len(files)
        for path, change in zip(files, self._map_files(self._analyze_unknown, files)):
            analysis.files[path] = change
            if change.error is None:
                analysis.summary.modified += 1
        logging.info(f"Fallback analysis complete: {len(files)} files analyzed")
        return analysis

    def _analyze_stat(self, stat: DiffStat) -> FileChange:
        try:
            diff_text = self.source_control.file_diff(self.config.base_ref, self.config.head_ref, stat.file)
            return self.analyze_file(stat.file, diff_text)
        except AnalysisUnavailable as e:
            logging.warning(f"Could not read diff for {stat.file}: {e}")
            return FileChange(file=stat.file, error=f"diff: {e}")
        except Exception as e:
            # Per-file failures are recorded, never raised
            logging.error(f"Unexpected failure analyzing {stat.file}: {e}")
            return FileChange(file=stat.file, error=f"analysis: {e}")

    def _analyze_unknown(self, path: str) -> FileChange:
        change = FileChange(file=path)
        try:
            declarations = self.extractor.extract_from_file(self.root / path)
        except ParseError as e:
            logging.warning(f"Failed to analyze {path}: {e}")
            change.error = f"parse: {e}"
            declarations = []
        change.functions = {declaration.name: ChangeType.UNKNOWN for declaration in declarations}
        change.impact = classify_impact(path, change.functions)
        return change

    def _fallback_files(self) -> List[str]:
        seen = {}
        for pattern in self.config.fallback_globs:
            for match in sorted(self.root.glob(pattern)):
                if not match.is_file():
                    continue
                relative = match.relative_to(self.root).as_posix()
                if self.is_testable_file(relative):
                    seen.setdefault(relative, None)
        return list(seen)

    def _map_files(self, func, items: Iterable) -> List[FileChange]:
        items = list(items)
        workers = self.config.analysis_workers
        if workers <= 1 or len(items) <= 1:
            return [func(item) for item in items]
        # executor.map yields results in submission order
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(func, items))

    @staticmethod
    def _count(summary: ChangeSummary, stat: DiffStat) -> None:
        summary.total_changes += 1
        if stat.insertions > 0 and stat.deletions == 0:
            summary.added += 1
        elif stat.deletions > 0 and stat.insertions == 0:
            summary.deleted += 1
        else:
            summary.modified += 1
