"""
Approximate (fuzzy) word matching for noisy chat text.

Messages are normalized once (leetspeak folded to letters, punctuation
stripped), split on whitespace, and each word is scored against each
pattern: a case-insensitive full regex match counts as an exact hit,
otherwise the Levenshtein distance decides.
"""

import re
import string
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

import numpy as np

from chat_automata.config import AutomataConfig, get_default_config
from chat_automata.utils.logging_config import get_logger

# Module logger
logger = get_logger(__name__)

LEET_MAP = {
    '1': 'i', '0': 'o', '3': 'e', '4': 'a', '5': 's',
    '7': 't', '@': 'a', '$': 's', '!': 'i',
}

DEFAULT_TOXIC_WORDS = ["stupid", "idiot", "ugly", "dumb", "hate", "fuck", "n00b"]

_ASCII_ALNUM = frozenset(string.ascii_letters + string.digits)
_ASCII_WHITESPACE = frozenset(string.whitespace)


@dataclass(frozen=True)
class MatchResult:
    """
    One word-versus-pattern hit.

    Attributes:
        original: The (normalized) word from the message
        matched_pattern: The pattern it matched
        distance: Levenshtein edit distance (0 for regex hits)
        similarity: Percentage in [0, 100]
    """
    original: str
    matched_pattern: str
    distance: int
    similarity: float


def normalize_text(message: str) -> str:
    """
    Fold leetspeak and strip punctuation.

    Each character whose lower-case form is a leetspeak key is replaced by
    its letter; then every character that is neither an ASCII letter/digit
    nor ASCII whitespace is removed. Other characters keep their case.
    Normalizing already-normalized text is a no-op.
    """
    folded = (LEET_MAP.get(char.lower(), char) for char in message)
    return "".join(char for char in folded if char in _ASCII_ALNUM or char in _ASCII_WHITESPACE)


def tokenize_words(normalized: str) -> List[str]:
    return normalized.split()


def levenshtein_distance(first: str, second: str) -> int:
    """
    Classic Levenshtein distance, case-insensitive.

    Insertions, deletions and substitutions each cost 1. Fills the full
    dynamic-programming table with no early termination.
    """
    a = first.lower()
    b = second.lower()
    rows, cols = len(a) + 1, len(b) + 1

    table = np.zeros((rows, cols), dtype=np.int64)
    table[:, 0] = np.arange(rows)
    table[0, :] = np.arange(cols)

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            table[i, j] = min(
                table[i - 1, j] + 1,
                table[i, j - 1] + 1,
                table[i - 1, j - 1] + cost,
            )

    return int(table[rows - 1, cols - 1])


def similarity_percent(word: str, pattern: str, distance: int) -> float:
    longest = max(len(word), len(pattern))
    if longest == 0:
        return 100.0
    return (1.0 - distance / longest) * 100.0


def compile_fuzzy_pattern(pattern: str) -> Optional[Pattern]:
    """
    Capability check for the regex fast path.

    Returns:
        A compiled case-insensitive regex, or None when the pattern does not
        parse. None only means "no fast path"; it is not an error.
    """
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.debug(f"Pattern {pattern!r} has no regex fast path: {e}")
        return None


class ApproximateMatcher:
    """
    Scores words of a message against patterns.

    Args:
        verbose: Log per-word decisions at DEBUG level
        config: Optional configuration providing the default maximum edit distance
    """

    def __init__(self, verbose: bool = False, config: Optional[AutomataConfig] = None):
        self.verbose = verbose
        self.config = config or get_default_config()

    def match_word(self, word: str, pattern: str, max_edits: int,
                   compiled: Optional[Pattern] = None) -> Optional[MatchResult]:
        """
        Score a single word against one pattern.

        A full case-insensitive regex match short-circuits to distance 0 and
        100% similarity. Otherwise the word matches iff its edit distance to
        the pattern string is at most ``max_edits``.
        """
        if compiled is not None and compiled.fullmatch(word):
            return MatchResult(word, pattern, 0, 100.0)

        distance = levenshtein_distance(word, pattern)
        if distance <= max_edits:
            return MatchResult(word, pattern, distance, similarity_percent(word, pattern, distance))
        return None

    def find_matches(self, message: str, pattern: str,
                     max_edits: Optional[int] = None) -> List[MatchResult]:
        """
        Find every word of ``message`` that matches ``pattern``.

        Args:
            message: Raw message text
            pattern: Target word, or a small regex such as ``.*`` or ``idiot|dumb``
            max_edits: Maximum edit distance (configured default when omitted)

        Returns:
            Matches in word order
        """
        return self.find_matches_any(message, [pattern], max_edits)

    def find_matches_any(self, message: str, patterns: Iterable[str],
                         max_edits: Optional[int] = None) -> List[MatchResult]:
        """
        Score every word against every pattern, normalizing the message once.

        Returns:
            All hits ordered by word position, then by pattern order. Hits for
            the same word under different patterns are all kept.
        """
        if max_edits is None:
            max_edits = self.config.default_max_edits

        patterns = list(patterns)
        compiled = [compile_fuzzy_pattern(pattern) for pattern in patterns]
        normalized = normalize_text(message)

        if self.verbose:
            logger.debug(f"Patterns {patterns!r}, max edits {max_edits}, normalized {normalized!r}")

        results: List[MatchResult] = []
        for position, word in enumerate(tokenize_words(normalized), start=1):
            for pattern, regex in zip(patterns, compiled):
                match = self.match_word(word, pattern, max_edits, regex)
                if match is not None:
                    results.append(match)
                    if self.verbose:
                        logger.debug(f"Word {position}: {word!r} -> {pattern!r} (distance {match.distance})")
                elif self.verbose:
                    logger.debug(f"Word {position}: {word!r} -> no match for {pattern!r}")

        return results


def find_matches(message: str, pattern: str, max_edits: int = 2) -> List[MatchResult]:
    """Module-level convenience wrapper around ``ApproximateMatcher.find_matches``."""
    return ApproximateMatcher().find_matches(message, pattern, max_edits)
