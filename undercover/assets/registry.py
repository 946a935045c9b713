from __future__ import annotations

import json
import logging
import os
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from undercover.core.errors import NoValidCategory

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES: tuple[str, ...] = ("it", "en")
DEFAULT_LANGUAGE = "it"


class AssetLoadError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class WordPair:
    majority_word: str
    minority_word: str
    category: str


class WordSource(Protocol):
    def pick_pair(self, *, rng: random.Random) -> WordPair: ...


def pick_word_pair(lexicon: Mapping[str, Sequence[str]], *, rng: random.Random) -> WordPair:
    """Pick two related words from one random category.

    Only categories with at least two entries qualify. The two words come from distinct
    indices; which one becomes the minority word carries no meaning.
    """

    valid = [key for key, words in lexicon.items() if len(words) >= 2]
    if not valid:
        raise NoValidCategory("No category with at least 2 words")

    category = rng.choice(valid)
    words = lexicon[category]

    first = rng.randrange(len(words))
    second = rng.randrange(len(words))
    while second == first:
        second = rng.randrange(len(words))

    return WordPair(majority_word=words[first], minority_word=words[second], category=category)


@dataclass(frozen=True, slots=True)
class Lexicon:
    """Category id -> related words, for one language.

    Read-only after loading; satisfies `WordSource`.
    """

    language: str
    categories: Mapping[str, tuple[str, ...]]

    def valid_categories(self) -> tuple[str, ...]:
        return tuple(k for k, words in self.categories.items() if len(words) >= 2)

    def pick_pair(self, *, rng: random.Random) -> WordPair:
        return pick_word_pair(self.categories, rng=rng)


def lexicon_from_mapping(*, language: str, raw: object, source: str = "<memory>") -> Lexicon:
    if not isinstance(raw, dict):
        raise AssetLoadError(f"Lexicon root must be an object: {source}")

    categories: dict[str, tuple[str, ...]] = {}
    for key, words in raw.items():
        if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
            raise AssetLoadError(f"Category '{key}' must be a list of strings: {source}")

        cleaned = tuple(w.strip() for w in words if w.strip())
        if not cleaned:
            continue
        if len(set(cleaned)) != len(cleaned):
            # Kept as-is: picks are distinct by index, so the same string can show up twice.
            logger.warning("Category '%s' in %s contains duplicate words", key, source)
        categories[str(key).strip()] = cleaned

    return Lexicon(language=language, categories=categories)


def load_lexicon_json(path: Path, *, language: str) -> Lexicon:
    try:
        raw = json.loads(path.read_text(encoding="utf-8-sig"))
    except FileNotFoundError as e:
        raise AssetLoadError(f"Asset file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise AssetLoadError(f"Invalid JSON in {path}: {e}") from e

    lexicon = lexicon_from_mapping(language=language, raw=raw, source=str(path))
    if not lexicon.categories:
        raise AssetLoadError(f"Empty lexicon: {path}")
    return lexicon


def _fallback_lexicon(language: str) -> Lexicon:
    """Tiny built-in word lists for tests/CI when the real lexicon files are missing."""

    fallback: dict[str, dict[str, list[str]]] = {
        "it": {
            "animali": ["gatto", "cane", "topo"],
            "frutta": ["mela", "pera", "pesca"],
            "bevande": ["caffè", "tè"],
        },
        "en": {
            "animals": ["cat", "dog", "mouse"],
            "fruit": ["apple", "pear", "peach"],
            "drinks": ["coffee", "tea"],
        },
    }
    return lexicon_from_mapping(language=language, raw=fallback[language], source="<fallback>")


def lexicon_path(*, root: Path, language: str) -> Path:
    return root / "assets" / f"lexicon_{language}.json"


def load_lexicons(*, root: Path) -> dict[str, Lexicon]:
    # Default behavior: fall back to a tiny dummy lexicon when files are missing.
    # You can force strict behavior by setting UNDERCOVER_STRICT_ASSETS=1.
    strict = os.getenv("UNDERCOVER_STRICT_ASSETS", "").strip().lower() in {"1", "true", "yes"}

    out: dict[str, Lexicon] = {}
    for language in SUPPORTED_LANGUAGES:
        try:
            out[language] = load_lexicon_json(lexicon_path(root=root, language=language), language=language)
        except AssetLoadError:
            if strict:
                raise
            logger.warning("Using fallback lexicon for '%s' (no usable file under %s)", language, root)
            out[language] = _fallback_lexicon(language)
    return out
