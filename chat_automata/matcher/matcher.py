"""
Substring scanning over finite automata.

Tests every substring of a message against an acceptor (NFA or DFA) and
reports the accepted spans. This is the dominant cost driver for callers
(O(n^2) substrings, each simulated in O(n)), so a window cap can bound it.
"""

from typing import List, Optional, Protocol, Tuple

from chat_automata.config import AutomataConfig, get_default_config
from chat_automata.utils.logging_config import get_logger

# Module logger
logger = get_logger(__name__)

Span = Tuple[int, int]


class Acceptor(Protocol):
    def simulate(self, text: str) -> bool:
        ...


def find_match_spans(acceptor: Acceptor, text: str, lowercase: bool = True,
                     max_window: Optional[int] = None,
                     config: Optional[AutomataConfig] = None) -> List[Span]:
    """
    Find every non-empty substring ``text[start:end]`` the acceptor accepts.

    Args:
        acceptor: Any object with ``simulate(str) -> bool`` (NFA or DFA)
        text: Message to scan
        lowercase: Lower-case the message before scanning
        max_window: Longest substring length to test; defaults to the
            configured ``max_scan_window`` (unbounded when that is None)
        config: Optional configuration

    Returns:
        List of (start, end) half-open spans in scan order
    """
    config = config or get_default_config()
    if max_window is None:
        max_window = config.max_scan_window

    subject = text.lower() if lowercase else text
    length = len(subject)
    spans: List[Span] = []

    for start in range(length):
        stop = length if max_window is None else min(length, start + max_window)
        for end in range(start + 1, stop + 1):
            if acceptor.simulate(subject[start:end]):
                spans.append((start, end))

    logger.debug(f"Scanned {length} characters, {len(spans)} accepted span(s)")
    return spans


def merge_spans(spans: List[Span]) -> List[Span]:
    """Collapse overlapping or touching spans into maximal disjoint ones, sorted by start."""
    merged: List[Span] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged
