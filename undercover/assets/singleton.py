from __future__ import annotations

from pathlib import Path

from undercover.assets.registry import Lexicon, load_lexicons
from undercover.core.errors import UnsupportedLanguage


_LEXICONS: dict[str, Lexicon] | None = None


def init_lexicons(*, project_root: Path) -> dict[str, Lexicon]:
    """Load every supported lexicon once and cache them.

    Safe to call multiple times; subsequent calls return the already loaded instances.
    """

    global _LEXICONS
    if _LEXICONS is None:
        _LEXICONS = load_lexicons(root=project_root)
    return _LEXICONS


def reset_lexicons_for_tests() -> None:
    """Reset the cached lexicons.

    This is intended for tests so they can initialize lexicons from fixture directories.
    """

    global _LEXICONS
    _LEXICONS = None


def get_lexicon(language: str) -> Lexicon:
    if _LEXICONS is None:
        raise RuntimeError("Lexicons not initialized. Call init_lexicons() at startup.")
    lexicon = _LEXICONS.get(language)
    if lexicon is None:
        raise UnsupportedLanguage(f"Unsupported language: {language}")
    return lexicon
