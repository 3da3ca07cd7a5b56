"""
Grammar registry for the three JS-family dialects we index.

Plain ``.js``/``.jsx``/``.mjs`` files go through tree-sitter-javascript rather
than the TypeScript grammar: React code routinely puts JSX in ``.js`` files,
and the ``typescript`` dialect rejects JSX. tree-sitter-typescript ships the
other two dialects as separate languages, ``typescript`` for ``.ts`` and
``tsx`` for ``.tsx``.
"""

from functools import lru_cache
from typing import Callable, Dict

from tree_sitter import Language

import tree_sitter_javascript
import tree_sitter_typescript

LANGUAGE_LOADERS: Dict[str, Callable[[], object]] = {
    "javascript": tree_sitter_javascript.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}


@lru_cache(maxsize=None)
def get_language(language_id: str) -> Language:
    """
    Raises:
        ValueError: no grammar is registered under ``language_id``.
    """
    try:
        loader = LANGUAGE_LOADERS[language_id]
    except KeyError:
        raise ValueError(f"Unsupported language: {language_id}") from None
    return Language(loader())
