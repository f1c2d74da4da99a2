"""
Regex tokenizer for the Thompson construction front end.

Turns a pattern string into a postfix token stream in four steps:

1. ``tokenize_regex`` classifies each character (literal, ``.`` wildcard,
   ``|``, ``*``, ``+``, ``?``, parentheses).
2. ``insert_empty_alternatives`` fills empty ``|`` branches with an EMPTY
   operand matching the empty string.
3. ``insert_concatenation`` inserts explicit CONCAT tokens wherever an
   implicit "and then" relationship exists.
4. ``to_postfix`` runs a shunting-yard pass using the precedence
   unary postfix > concatenation > alternation.

The dialect has no escapes and no character classes. Unbalanced
parentheses are tolerated: a stray ``)`` is dropped and an unclosed ``(``
is discarded when the operator stack is flushed.
"""

from enum import Enum
from dataclasses import dataclass
from typing import List

from chat_automata.utils.logging_config import get_logger

logger = get_logger(__name__)

# Printable form of the internal concatenation marker (ASCII unit separator)
CONCAT_MARKER = '\x1f'


class RegexTokenType(Enum):
    """Enum representing different types of regex tokens."""
    LITERAL = "LITERAL"
    WILDCARD = "WILDCARD"
    EMPTY = "EMPTY"
    CONCAT = "CONCAT"
    ALTERNATION = "ALTERNATION"
    STAR = "STAR"
    PLUS = "PLUS"
    OPTIONAL = "OPTIONAL"
    GROUP_START = "GROUP_START"
    GROUP_END = "GROUP_END"


UNARY_OPERATORS = frozenset({RegexTokenType.STAR, RegexTokenType.PLUS, RegexTokenType.OPTIONAL})
BINARY_OPERATORS = frozenset({RegexTokenType.CONCAT, RegexTokenType.ALTERNATION})
OPERATORS = UNARY_OPERATORS | BINARY_OPERATORS

# Higher number binds tighter
PRECEDENCE = {
    RegexTokenType.STAR: 4,
    RegexTokenType.PLUS: 4,
    RegexTokenType.OPTIONAL: 4,
    RegexTokenType.CONCAT: 3,
    RegexTokenType.ALTERNATION: 1,
}

_SPECIAL_CHARS = {
    '.': RegexTokenType.WILDCARD,
    '|': RegexTokenType.ALTERNATION,
    '*': RegexTokenType.STAR,
    '+': RegexTokenType.PLUS,
    '?': RegexTokenType.OPTIONAL,
    '(': RegexTokenType.GROUP_START,
    ')': RegexTokenType.GROUP_END,
}


@dataclass(frozen=True)
class RegexToken:
    """A single token of a regex pattern with its source position (-1 for synthesized tokens)."""
    type: RegexTokenType
    value: str
    position: int = -1

    @property
    def is_operand(self) -> bool:
        return self.type in (RegexTokenType.LITERAL, RegexTokenType.WILDCARD, RegexTokenType.EMPTY)

    @property
    def is_operator(self) -> bool:
        return self.type in OPERATORS

    @property
    def is_unary(self) -> bool:
        return self.type in UNARY_OPERATORS

    def __str__(self) -> str:
        return self.value


def tokenize_regex(pattern: str) -> List[RegexToken]:
    """
    Split a pattern into typed tokens, one per character.

    Args:
        pattern: The regex pattern string

    Returns:
        List of RegexToken in source order
    """
    return [
        RegexToken(_SPECIAL_CHARS.get(char, RegexTokenType.LITERAL), char, position)
        for position, char in enumerate(pattern)
    ]


_BRANCH_OPENERS = (RegexTokenType.GROUP_START, RegexTokenType.ALTERNATION)
_BRANCH_CLOSERS = (RegexTokenType.GROUP_END, RegexTokenType.ALTERNATION)


def insert_empty_alternatives(tokens: List[RegexToken]) -> List[RegexToken]:
    """
    Make empty alternation branches explicit.

    An EMPTY token (matching the empty string) is placed on either side of a
    ``|`` that has nothing there: ``(a|)`` becomes ``(a|ε)`` and ``|b``
    becomes ``ε|b``.

    Args:
        tokens: Tokens as produced by tokenize_regex

    Returns:
        New token list with EMPTY operands for empty branches
    """
    result: List[RegexToken] = []
    for index, token in enumerate(tokens):
        if token.type != RegexTokenType.ALTERNATION:
            result.append(token)
            continue

        if not result or result[-1].type in _BRANCH_OPENERS:
            result.append(RegexToken(RegexTokenType.EMPTY, "", token.position))
        result.append(token)
        if index + 1 == len(tokens) or tokens[index + 1].type in _BRANCH_CLOSERS:
            result.append(RegexToken(RegexTokenType.EMPTY, "", token.position))
    return result


def _ends_operand(token: RegexToken) -> bool:
    return token.is_operand or token.type == RegexTokenType.GROUP_END or token.is_unary


def _starts_operand(token: RegexToken) -> bool:
    return token.is_operand or token.type == RegexTokenType.GROUP_START


def insert_concatenation(tokens: List[RegexToken]) -> List[RegexToken]:
    """
    Insert explicit CONCAT tokens between adjacent tokens that are implicitly concatenated.

    A CONCAT is inserted when the left token is a literal, wildcard, ``)`` or a
    postfix operator and the right token is a literal, wildcard or ``(``.

    Args:
        tokens: Tokens as produced by tokenize_regex

    Returns:
        New token list containing CONCAT tokens
    """
    result: List[RegexToken] = []
    for index, token in enumerate(tokens):
        result.append(token)
        if index + 1 < len(tokens) and _ends_operand(token) and _starts_operand(tokens[index + 1]):
            result.append(RegexToken(RegexTokenType.CONCAT, CONCAT_MARKER))
    return result


def to_postfix(tokens: List[RegexToken]) -> List[RegexToken]:
    """
    Convert an infix token stream (with explicit CONCAT tokens) to postfix.

    Postfix operators are right-binding against equal precedence, so a run of
    them such as ``a*?`` is emitted in source order. Parentheses bound the
    operator-stack pop loop and never appear in the output.

    Args:
        tokens: Infix tokens including CONCAT tokens

    Returns:
        Postfix token list
    """
    output: List[RegexToken] = []
    operators: List[RegexToken] = []

    for token in tokens:
        if token.type == RegexTokenType.GROUP_START:
            operators.append(token)
        elif token.type == RegexTokenType.GROUP_END:
            while operators and operators[-1].type != RegexTokenType.GROUP_START:
                output.append(operators.pop())
            if operators:
                operators.pop()
            else:
                logger.debug(f"Ignoring unmatched ')' at position {token.position}")
        elif token.is_operator:
            while operators and operators[-1].type != RegexTokenType.GROUP_START:
                top_precedence = PRECEDENCE[operators[-1].type]
                current_precedence = PRECEDENCE[token.type]
                if top_precedence > current_precedence or (
                        top_precedence == current_precedence and token.is_unary):
                    output.append(operators.pop())
                else:
                    break
            operators.append(token)
        else:
            output.append(token)

    while operators:
        token = operators.pop()
        if token.type == RegexTokenType.GROUP_START:
            logger.debug(f"Ignoring unmatched '(' at position {token.position}")
            continue
        output.append(token)

    return output


def regex_to_postfix(pattern: str) -> List[RegexToken]:
    """Run the full front end: tokenize, fill empty branches, insert concatenation, convert to postfix."""
    return to_postfix(insert_concatenation(insert_empty_alternatives(tokenize_regex(pattern))))


_RENDERED = {RegexTokenType.CONCAT: '&', RegexTokenType.EMPTY: 'ε'}


def postfix_to_string(tokens: List[RegexToken]) -> str:
    """Render a postfix token stream, showing CONCAT as '&' and EMPTY as 'ε' for logs and tests."""
    return "".join(_RENDERED.get(t.type, t.value) for t in tokens)
