from __future__ import annotations

import logging

import redis

from undercover.assets.registry import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from undercover.core.errors import UnsupportedLanguage

logger = logging.getLogger(__name__)

LANGUAGE_KEY = "undercover:settings:language"


def normalize_language(language: str) -> str:
    code = language.strip().casefold()
    if code not in SUPPORTED_LANGUAGES:
        allowed = ",".join(SUPPORTED_LANGUAGES)
        raise UnsupportedLanguage(f"Unsupported language '{language}' (supported: {allowed})")
    return code


def get_language(*, r: redis.Redis) -> str:
    """Current language preference; the default when unset or no longer supported."""

    raw = r.get(LANGUAGE_KEY)
    if not raw or raw not in SUPPORTED_LANGUAGES:
        return DEFAULT_LANGUAGE
    return str(raw)


def set_language(*, r: redis.Redis, language: str) -> str:
    code = normalize_language(language)
    r.set(LANGUAGE_KEY, code)
    logger.info("Language preference set to '%s'", code)
    return code
