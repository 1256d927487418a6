"""Tree-sitter parsing for JavaScript and TypeScript sources.

Usage:
    parser = SourceParser()
    tree = parser.parse(code_bytes, "typescript")
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Any, Optional

import tree_sitter
import tree_sitter_javascript
import tree_sitter_typescript

from ..exceptions import UnsupportedLanguageError
from ..logging_config import get_logger

logger = get_logger(__name__)

# Grammar entry points, one per language name.
_GRAMMARS = {
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
    "javascript": tree_sitter_javascript.language,
}

_EXTENSIONS = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}


def get_supported_languages() -> list[str]:
    return list(_GRAMMARS)


def get_supported_extensions() -> list[str]:
    return list(_EXTENSIONS)


def detect_language(path: str) -> Optional[str]:
    """Language name for a file path, or None for unsupported extensions."""
    return _EXTENSIONS.get(PurePath(path).suffix.lower())


class SourceParser:
    """Per-language tree-sitter parsers, created on first use.

    A tree_sitter.Parser is not safe to share across threads; give each
    worker its own SourceParser.
    """

    def __init__(self) -> None:
        self._parsers: dict[str, Any] = {}

    def _parser_for(self, language: str) -> Any:
        parser = self._parsers.get(language)
        if parser is not None:
            return parser

        lang_fn = _GRAMMARS.get(language)
        if lang_fn is None:
            raise UnsupportedLanguageError(language, get_supported_languages())

        # tree-sitter >= 0.23 grammars return a PyCapsule; wrap in Language()
        lang_obj = tree_sitter.Language(lang_fn())
        parser = tree_sitter.Parser(lang_obj)
        self._parsers[language] = parser
        return parser

    def parse(self, code: bytes, language: str) -> Any:
        """Parse code and return the syntax tree.

        Tree-sitter recovers from syntax errors, so a tree is always
        returned; ``tree.root_node.has_error`` tells whether recovery
        happened.

        Raises:
            UnsupportedLanguageError: If ``language`` has no grammar
        """
        tree = self._parser_for(language).parse(code)
        if tree.root_node.has_error:
            logger.debug(f"Syntax errors while parsing {language} source; scoring recovered tree")
        return tree
