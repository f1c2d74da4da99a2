"""
Pytest fixtures for the chat automata tests.
"""

import pytest

from chat_automata.config import AutomataConfig
from chat_automata.fuzzy.approximate_matcher import DEFAULT_TOXIC_WORDS
from chat_automata.matcher.automata import compile_regex


@pytest.fixture
def small_config():
    """Configuration with a tiny default alphabet and shallow limits."""
    return AutomataConfig(
        default_alphabet=['x', 'y'],
        max_stack_depth=3,
        max_nesting_depth=2,
        default_max_edits=1,
    )


@pytest.fixture
def toxic_words():
    return list(DEFAULT_TOXIC_WORDS)


@pytest.fixture
def chat_messages():
    """Sample chat lines with the structure each one is expected to have."""
    return {
        'clean': "good game everyone",
        'formatted': "**bold *italic* still bold**",
        'broken_italic': "**bold *italic**",
        'script': "<script>alert(1)</script>",
        'sql': "name' OR '1'='1",
        'bracketed_insult': "gg (you are st0p1d) lol",
    }


@pytest.fixture
def regex_samples():
    """Patterns paired with strings they accept and reject."""
    return [
        ("ab", ["ab"], ["", "a", "b", "abc", "ba"]),
        ("a|b", ["a", "b"], ["", "ab", "c"]),
        ("a*", ["", "a", "aaaa"], ["b", "ab"]),
        ("a+b", ["ab", "aaab"], ["b", "a", "abb"]),
        ("a?b", ["b", "ab"], ["aab", "a", ""]),
        ("(ab)*c", ["c", "abc", "ababc"], ["ab", "abac", "cc"]),
        ("(a|b)*abb", ["abb", "aabb", "babb", "ababb"], ["ab", "abba", ""]),
        ("h.llo", ["hello", "hallo", "h llo", "héllo"], ["hllo", "helo", "helloo"]),
        ("n(0|o)+b", ["n0b", "noob", "n00b", "no0b"], ["nb", "n0", "nob0"]),
        ("colou?r|(gr|)ey", ["color", "colour", "grey", "ey"], ["colouur", "gry", ""]),
    ]


@pytest.fixture
def idiot_nfa():
    return compile_regex("id(i|1)ot")
