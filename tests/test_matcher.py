"""
Tests for substring scanning over NFAs and DFAs.
"""

from chat_automata.config import AutomataConfig
from chat_automata.matcher.automata import compile_regex
from chat_automata.matcher.dfa import nfa_to_dfa
from chat_automata.matcher.matcher import find_match_spans, merge_spans


class TestFindMatchSpans:

    def test_spans_for_nfa_and_dfa_agree(self):
        nfa = compile_regex("ab")
        dfa = nfa_to_dfa(nfa)
        assert find_match_spans(nfa, "xabyab") == [(1, 3), (4, 6)]
        assert find_match_spans(dfa, "xabyab") == [(1, 3), (4, 6)]

    def test_lowercases_by_default(self, idiot_nfa):
        assert find_match_spans(idiot_nfa, "You ID1OT") == [(4, 9)]
        assert find_match_spans(idiot_nfa, "You ID1OT", lowercase=False) == []

    def test_overlapping_spans(self):
        nfa = compile_regex("a+")
        assert find_match_spans(nfa, "aa") == [(0, 1), (0, 2), (1, 2)]

    def test_window_limit(self):
        nfa = compile_regex("a|ab")
        assert find_match_spans(nfa, "ab") == [(0, 1), (0, 2)]
        assert find_match_spans(nfa, "ab", max_window=1) == [(0, 1)]

    def test_window_from_config(self):
        nfa = compile_regex("a+")
        config = AutomataConfig(max_scan_window=1)
        assert find_match_spans(nfa, "aaa", config=config) == [(0, 1), (1, 2), (2, 3)]

    def test_empty_matches_are_not_reported(self):
        assert find_match_spans(compile_regex("a*"), "b") == []
        assert find_match_spans(compile_regex("a"), "") == []


class TestMergeSpans:

    def test_merges_overlapping_and_touching(self):
        assert merge_spans([(1, 3), (0, 2), (5, 6)]) == [(0, 3), (5, 6)]
        assert merge_spans([(0, 2), (2, 4)]) == [(0, 4)]

    def test_empty(self):
        assert merge_spans([]) == []
