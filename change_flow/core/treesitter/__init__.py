"""
Tree-sitter integration for change_flow.

Provides language loading, parsing and the declaration index used by change attribution.
"""

from .parser import parse_source, get_parser, language_for_path
from .languages import LANGUAGE_LOADERS, get_language
from .declarations import extract_declarations
from .extractor import DeclarationExtractor

__all__ = [
    "parse_source",
    "get_parser",
    "language_for_path",
    "LANGUAGE_LOADERS",
    "get_language",
    "extract_declarations",
    "DeclarationExtractor",
]
