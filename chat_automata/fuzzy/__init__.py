# chat_automata/fuzzy/__init__.py

from .approximate_matcher import (
    ApproximateMatcher,
    MatchResult,
    DEFAULT_TOXIC_WORDS,
    normalize_text,
    levenshtein_distance,
    find_matches,
)

__all__ = [
    'ApproximateMatcher',
    'MatchResult',
    'DEFAULT_TOXIC_WORDS',
    'normalize_text',
    'levenshtein_distance',
    'find_matches',
]
