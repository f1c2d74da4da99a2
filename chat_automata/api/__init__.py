# chat_automata/api/__init__.py
"""
Public entry points for chat message automata.
"""

from .service import (
    compile_regex,
    nfa_simulate,
    dfa_simulate,
    nfa_to_dfa,
    pda_balanced,
    pda_validate_formatting,
    pda_detect_injection,
    pda_scan_toxicity,
    approx_find_matches,
)

__all__ = [
    'compile_regex',
    'nfa_simulate',
    'dfa_simulate',
    'nfa_to_dfa',
    'pda_balanced',
    'pda_validate_formatting',
    'pda_detect_injection',
    'pda_scan_toxicity',
    'approx_find_matches',
]
