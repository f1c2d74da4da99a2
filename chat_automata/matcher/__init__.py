# chat_automata/matcher/__init__.py

from .regex_tokenizer import RegexToken, RegexTokenType, tokenize_regex, regex_to_postfix
from .automata import (
    NFA, NFABuilder, NFAState, Symbol, WILDCARD, EPSILON, AutomatonStructureError, compile_regex
)
from .dfa import DFA, DFABuilder, DFAState, FAIL_STATE, nfa_to_dfa
from .matcher import find_match_spans, merge_spans

__all__ = [
    'RegexToken',
    'RegexTokenType',
    'tokenize_regex',
    'regex_to_postfix',
    'NFA',
    'NFABuilder',
    'NFAState',
    'Symbol',
    'WILDCARD',
    'EPSILON',
    'AutomatonStructureError',
    'compile_regex',
    'DFA',
    'DFABuilder',
    'DFAState',
    'FAIL_STATE',
    'nfa_to_dfa',
    'find_match_spans',
    'merge_spans',
]
