"""
Tests for the transition-table PDA and its factory configurations.
"""

import pytest

from chat_automata.config import AutomataConfig
from chat_automata.matcher.automata import AutomatonStructureError
from chat_automata.pda.pda_engine import (
    PDA, PDAFactory, PDATransition, BOTTOM_MARKER, EPSILON_INPUT, NO_POP, OTHER
)
from chat_automata.pda.structure_validators import check_balanced


BRACKET_CASES = [
    ("()", True),
    ("(())", True),
    ("()()", True),
    ("(", False),
    (")", False),
    ("())", False),
    ("(()", False),
    ("(a[b]c)", True),
    ("(a[b)c]", False),
    ("", True),
    ("no brackets at all", True),
    ("<{[()]}>", True),
    ("}{", False),
]


class TestPDATransition:
    """Transition tuple validation and stack effects."""

    def test_rejects_negative_target(self):
        with pytest.raises(AutomatonStructureError):
            PDATransition('a', NO_POP, "", -1)

    def test_rejects_multi_character_input(self):
        with pytest.raises(AutomatonStructureError):
            PDATransition('ab', NO_POP, "", 0)

    def test_push_string_is_pushed_in_order(self):
        transition = PDATransition('a', BOTTOM_MARKER, "$XY", 0)
        stack = PDA.apply((BOTTOM_MARKER,), transition)
        assert stack == ('$', 'X', 'Y')
        assert stack[-1] == 'Y'

    def test_no_pop_keeps_stack(self):
        transition = PDATransition(EPSILON_INPUT, NO_POP, "", 0)
        assert PDA.apply(('$', 'A'), transition) == ('$', 'A')
        assert not transition.consumes_input

    def test_label(self):
        assert PDATransition('(', NO_POP, "(", 0).label() == "( / ε → ("
        assert PDATransition(EPSILON_INPUT, '$', "", 1).label() == "ε / $ → ε"


class TestPDA:
    """Generic breadth-first simulation."""

    def setup_method(self):
        # a^n b^n
        self.pda = PDA()
        q0 = self.pda.add_node()
        q1 = self.pda.add_node()
        q2 = self.pda.add_node(is_final=True)
        self.pda.add_transition(q0, q0, 'a', NO_POP, "A")
        self.pda.add_transition(q0, q1, EPSILON_INPUT, NO_POP, "")
        self.pda.add_transition(q1, q1, 'b', 'A', "")
        self.pda.add_transition(q1, q2, EPSILON_INPUT, BOTTOM_MARKER, "")

    def test_counts_with_stack(self):
        assert self.pda.simulate("")
        assert self.pda.simulate("ab")
        assert self.pda.simulate("aaabbb")
        assert not self.pda.simulate("aab")
        assert not self.pda.simulate("abb")
        assert not self.pda.simulate("ba")

    def test_transitions_filtered_by_stack_top(self):
        offered = self.pda.available_transitions(1, 'A')
        assert [t.input_symbol for t in offered] == ['b']
        offered = self.pda.available_transitions(1, BOTTOM_MARKER)
        assert [t.input_symbol for t in offered] == [EPSILON_INPUT]

    def test_stack_depth_bound(self):
        shallow = PDA(AutomataConfig(max_stack_depth=3))
        shallow.nodes = self.pda.nodes
        assert shallow.simulate("aabb")
        assert not shallow.simulate("aaabbb")

    def test_unknown_node_rejected(self):
        with pytest.raises(AutomatonStructureError):
            self.pda.add_transition(0, 9, 'a', NO_POP, "")

    def test_empty_pda_rejects(self):
        assert not PDA().simulate("")

    def test_final_states(self):
        assert self.pda.final_states == frozenset({2})

    def test_other_matches_only_unclaimed_characters(self):
        pda = PDA()
        q0 = pda.add_node(is_final=True)
        pda.add_transition(q0, q0, OTHER, NO_POP)
        pda.add_transition(q0, q0, 'x', BOTTOM_MARKER, "$X")
        assert pda.simulate("abc")
        assert pda.simulate("ax")
        # 'x' is claimed by the explicit move, which needs '$' on top
        assert not pda.simulate("axx")

    def test_to_dataframe(self):
        df = self.pda.to_dataframe()
        assert list(df.columns) == ['source', 'target', 'input', 'pop', 'push', 'label']
        assert len(df) == 4
        assert "ε" in set(df['input'])

    def test_describe(self):
        text = self.pda.describe()
        assert "q2" in text
        assert "[FINAL]" in text


class TestPDAFactory:
    """Factory configurations agree with the direct simulators."""

    @pytest.mark.parametrize("text,expected", BRACKET_CASES)
    def test_balanced_brackets(self, text, expected):
        assert PDAFactory.balanced_brackets().simulate(text) == expected
        assert check_balanced(text) == expected

    @pytest.mark.parametrize("text,expected", BRACKET_CASES)
    def test_toxic_detection_recognizes_balanced_brackets(self, text, expected):
        assert PDAFactory.toxic_detection().simulate(text) == expected

    def test_toxic_detection_nodes(self):
        pda = PDAFactory.toxic_detection()
        assert [node.description for node in pda.nodes] == [
            "Start/Scan", "Inside Brackets", "Word Boundary", "Accept"
        ]
        assert pda.final_states == frozenset({3})

    @pytest.mark.parametrize("text,expected", [
        ("**bold *italic* still bold**", True),
        ("**bold *italic**", False),
        ("~~gone~~ and *kept*", True),
        ("*(a)*", True),
        ("*(a*)", False),
        ("plain text", True),
    ])
    def test_formatting(self, text, expected):
        assert PDAFactory.formatting().simulate(text) == expected

    def test_bracket_depth_limited_by_config(self):
        pda = PDAFactory.balanced_brackets(AutomataConfig(max_stack_depth=3))
        assert pda.simulate("(())")
        assert not pda.simulate("((()))")
