"""
Tree-sitter-based declaration extractor for JavaScript/TypeScript files.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from ..errors import ParseError
from ..models import Declaration
from .declarations import extract_declarations
from .parser import language_for_path, parse_source


@dataclass
class DeclarationExtractor:
    enable_performance_monitoring: bool = True
    performance_metrics: Dict[str, float] = field(
        default_factory=lambda: {
            "total_files": 0,
            "total_declarations": 0,
            "parse_time": 0.0,
            "io_time": 0.0,
        }
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def extract_from_file(self, file_path: Path) -> List[Declaration]:
        io_start = time.time()
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"Cannot read {file_path}: {e}", file_path=str(file_path)) from e
        io_time = time.time() - io_start

        declarations = self.extract_from_source(source, str(file_path))
        self._record(io_time=io_time)
        return declarations

    def extract_from_source(self, source: str, file_path: str) -> List[Declaration]:
        """
        Parse ``source`` with the grammar matching ``file_path`` and index its declarations.

        Raises:
            ParseError: unsupported extension or a tree with syntax errors.
        """
        try:
            language_id = language_for_path(file_path)
        except ValueError as e:
            raise ParseError(str(e), file_path=file_path) from e

        parse_start = time.time()
        tree = parse_source(source, language_id)
        parse_time = time.time() - parse_start

        if tree.root_node.has_error:
            raise ParseError(f"Syntax errors in {file_path}", file_path=file_path)

        declarations = extract_declarations(tree, source.encode("utf-8"))
        self._record(files=1, declarations=len(declarations), parse_time=parse_time)
        logging.debug(f"Indexed {len(declarations)} declarations in {file_path}")
        return declarations

    def _record(self, files: int = 0, declarations: int = 0, parse_time: float = 0.0, io_time: float = 0.0) -> None:
        if not self.enable_performance_monitoring:
            return
        with self._lock:
            self.performance_metrics["total_files"] += files
            self.performance_metrics["total_declarations"] += declarations
            self.performance_metrics["parse_time"] += parse_time
            self.performance_metrics["io_time"] += io_time
