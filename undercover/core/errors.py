from __future__ import annotations


class GameError(ValueError):
    """Base class for recoverable game-rule violations.

    Subclasses ValueError so callers (and the API layer) can treat them like any other bad input.
    """


class InvalidConfiguration(GameError):
    pass


class NoValidCategory(GameError):
    pass


class InvalidVoteTarget(GameError):
    pass


class InvalidPhase(GameError):
    pass


class UnsupportedLanguage(ValueError):
    pass
