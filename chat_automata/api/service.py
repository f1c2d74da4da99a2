# chat_automata/api/service.py
"""
Entry points for the surrounding application (console UI, log ingestion,
diagram rendering). Every function takes raw strings and returns plain
values; nothing here raises on malformed input.
"""

from typing import List, Sequence

from chat_automata.fuzzy.approximate_matcher import ApproximateMatcher, MatchResult
from chat_automata.matcher.automata import NFA, compile_regex as _compile_regex
from chat_automata.matcher.dfa import DFA, DFABuilder
from chat_automata.pda.structure_validators import (
    FormattingResult, InjectionScanResult, ToxicityScanResult,
    check_balanced, detect_injection, scan_bracket_toxicity, validate_formatting,
)
from chat_automata.utils.logging_config import get_logger

# Module logger
logger = get_logger(__name__)


def compile_regex(pattern: str) -> NFA:
    return _compile_regex(pattern)


def nfa_simulate(nfa: NFA, text: str) -> bool:
    return nfa.simulate(text)


def dfa_simulate(dfa: DFA, text: str) -> bool:
    return dfa.simulate(text)


def nfa_to_dfa(nfa: NFA) -> DFA:
    builder = DFABuilder(nfa)
    dfa = builder.build()
    logger.debug(f"Subset construction statistics: {builder.get_build_statistics()}")
    return dfa


def pda_balanced(text: str) -> bool:
    return check_balanced(text)


def pda_validate_formatting(text: str) -> FormattingResult:
    """
    Returns:
        (valid, error spans, message); the message is the most recent error,
        or "Valid formatting structure"
    """
    return validate_formatting(text)


def pda_detect_injection(text: str) -> InjectionScanResult:
    return detect_injection(text)


def pda_scan_toxicity(text: str, patterns: Sequence[str], max_edits: int) -> ToxicityScanResult:
    """
    Returns:
        (balanced, findings) where each finding reads "Found '<pattern>' in: <content>"
    """
    return scan_bracket_toxicity(text, patterns, max_edits)


def approx_find_matches(message: str, pattern: str, max_edits: int) -> List[MatchResult]:
    return ApproximateMatcher().find_matches(message, pattern, max_edits)
