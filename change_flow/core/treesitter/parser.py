"""
Tree-sitter parser facade with cached parser instances.

Parsers are cached per thread; a Parser must not be shared between threads
that parse concurrently.
"""

import threading
from pathlib import PurePosixPath
from typing import Dict

from tree_sitter import Parser, Tree

from .languages import get_language

EXTENSION_LANGUAGES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

_local = threading.local()


def get_parser(language_id: str) -> Parser:
    cache: Dict[str, Parser] = getattr(_local, "parsers", None)
    if cache is None:
        cache = _local.parsers = {}
    if language_id in cache:
        return cache[language_id]

    parser = Parser()
    parser.language = get_language(language_id)
    cache[language_id] = parser
    return parser


def language_for_path(file_path: str) -> str:
    suffix = PurePosixPath(str(file_path).replace("\\", "/")).suffix.lower()
    try:
        return EXTENSION_LANGUAGES[suffix]
    except KeyError:
        raise ValueError(f"No grammar registered for {file_path}") from None


def parse_source(source: str, language_id: str) -> Tree:
    parser = get_parser(language_id)
    return parser.parse(bytes(source, "utf-8"))
