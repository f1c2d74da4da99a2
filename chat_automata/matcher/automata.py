"""
Nondeterministic finite automata for text pattern recognition.

This module implements the NFA arena (states addressed by integer index),
epsilon-closure, direct simulation with wildcard support, and the Thompson
construction that compiles a regex postfix stream into an NFA.

Features:
- Arena-owned states: every cross-reference is a plain integer index
- Breadth-first epsilon closure, idempotent and cycle-safe
- Simulation that unions exact-symbol and wildcard moves per character
- Lenient regex compilation that never raises on malformed patterns
- Transition enumeration with a dedicated EPSILON marker
- Tabular export of the edge list as a pandas DataFrame
"""

from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union
from collections import deque
from enum import Enum

import pandas as pd

from chat_automata.matcher.regex_tokenizer import RegexToken, RegexTokenType, regex_to_postfix
from chat_automata.utils.logging_config import get_logger, PerformanceTimer

# Module logger
logger = get_logger(__name__)


class Symbol(Enum):
    """Reserved transition labels that never compare equal to an input character."""
    WILDCARD = "."
    EPSILON = "ε"

    def __str__(self) -> str:
        return self.value


WILDCARD = Symbol.WILDCARD
EPSILON = Symbol.EPSILON

# Type aliases for better readability
StateIndex = int
TransitionSymbol = Union[str, Symbol]
Fragment = Tuple[StateIndex, StateIndex]


class AutomatonStructureError(ValueError):
    """Raised when an automaton is assembled with dangling or out-of-range state references."""
    pass


def symbol_label(symbol: TransitionSymbol) -> str:
    """Printable label for a transition symbol."""
    return str(symbol)


class NFAState:
    """
    NFA state stored in the owning NFA's arena.

    Attributes:
        state_id: Index of this state inside the owning NFA
        is_accept: Whether this is an accepting (final) state
        transitions: Mapping from input symbol (or WILDCARD) to ordered destination indices
        epsilon: Ordered destination indices reachable without consuming input
    """

    def __init__(self, state_id: StateIndex, is_accept: bool = False):
        self.state_id = state_id
        self.is_accept = is_accept
        self.transitions: Dict[TransitionSymbol, List[StateIndex]] = {}
        self.epsilon: List[StateIndex] = []

    def add_transition(self, symbol: TransitionSymbol, target: StateIndex) -> None:
        if symbol is EPSILON:
            self.add_epsilon(target)
            return
        self.transitions.setdefault(symbol, []).append(target)

    def add_epsilon(self, target: StateIndex) -> None:
        self.epsilon.append(target)

    def targets_on(self, char: str) -> List[StateIndex]:
        """Destinations reachable by consuming ``char``: exact-symbol moves followed by wildcard moves."""
        return self.transitions.get(char, []) + self.transitions.get(WILDCARD, [])

    def __repr__(self) -> str:
        return f"NFAState({self.state_id}, accept={self.is_accept})"


class NFA:
    """
    Nondeterministic finite automaton over single characters.

    The NFA exclusively owns its states. It is built once (normally by
    ``NFABuilder`` / ``compile_regex``) and then only queried.

    Attributes:
        start: Start state index
        states: State arena; ``states[i].state_id == i``
        final_states: Accepting state indices, kept in sync with per-state flags

    Raises:
        AutomatonStructureError: If the start index or any transition target does
            not refer to a state in the arena
    """

    def __init__(self, start: StateIndex, states: List[NFAState],
                 final_states: Optional[Iterable[StateIndex]] = None):
        if not states:
            raise AutomatonStructureError("NFA must have at least one state")

        if not (0 <= start < len(states)):
            raise AutomatonStructureError(f"Start state index {start} out of range [0, {len(states)})")

        self.start = start
        self.states = states

        finals = set(final_states) if final_states is not None else set()
        for index in finals:
            if not (0 <= index < len(states)):
                raise AutomatonStructureError(f"Final state index {index} out of range [0, {len(states)})")
            states[index].is_accept = True
        finals.update(s.state_id for s in states if s.is_accept)
        self.final_states: FrozenSet[StateIndex] = frozenset(finals)

        for index, state in enumerate(states):
            if state.state_id != index:
                raise AutomatonStructureError(f"State at index {index} carries id {state.state_id}")
            for target in self._iter_targets(state):
                if not (0 <= target < len(states)):
                    raise AutomatonStructureError(
                        f"State {index} has transition to unknown state {target}")

    @staticmethod
    def _iter_targets(state: NFAState) -> Iterable[StateIndex]:
        for targets in state.transitions.values():
            yield from targets
        yield from state.epsilon

    def validate(self) -> bool:
        """
        Check the arena invariants.

        Returns:
            bool: True if the start state, every transition target and the
            final-state set are consistent, False otherwise
        """
        if not (0 <= self.start < len(self.states)):
            logger.error(f"Start state {self.start} does not exist")
            return False

        for index, state in enumerate(self.states):
            for target in self._iter_targets(state):
                if not (0 <= target < len(self.states)):
                    logger.error(f"State {index} has dangling transition to {target}")
                    return False
            if state.is_accept != (index in self.final_states):
                logger.error(f"State {index} final flag out of sync with final-state set")
                return False

        return True

    def epsilon_closure(self, state_indices: Iterable[StateIndex]) -> FrozenSet[StateIndex]:
        """
        Compute the epsilon closure of a set of states.

        Breadth-first expansion along epsilon edges. Terminates on cyclic
        graphs and is idempotent: the closure of a closure is itself.

        Args:
            state_indices: Seed state indices

        Returns:
            FrozenSet[int]: The seed states plus everything epsilon-reachable from them
        """
        closure: Set[StateIndex] = set(state_indices)
        queue = deque(closure)

        while queue:
            current_state = queue.popleft()
            for target in self.states[current_state].epsilon:
                if target not in closure:
                    closure.add(target)
                    queue.append(target)

        return frozenset(closure)

    def move(self, state_indices: Iterable[StateIndex], char: str) -> Set[StateIndex]:
        """Union of exact-symbol and wildcard destinations for ``char`` (no closure applied)."""
        next_states: Set[StateIndex] = set()
        for index in state_indices:
            next_states.update(self.states[index].targets_on(char))
        return next_states

    def simulate(self, text: str) -> bool:
        """
        Run the NFA over ``text``.

        Args:
            text: Input string (empty string only uses the initial closure)

        Returns:
            bool: True if some active state is final after consuming all input
        """
        current_states = self.epsilon_closure([self.start])

        for char in text:
            current_states = self.epsilon_closure(self.move(current_states, char))
            if not current_states:
                return False

        return not current_states.isdisjoint(self.final_states)

    def trace(self, text: str) -> List[FrozenSet[StateIndex]]:
        """
        Active state sets while processing ``text``.

        Returns:
            List of closures: the initial closure followed by one entry per
            consumed character. Stops early once no state is active.
        """
        current_states = self.epsilon_closure([self.start])
        history = [current_states]

        for char in text:
            current_states = self.epsilon_closure(self.move(current_states, char))
            history.append(current_states)
            if not current_states:
                break

        return history

    def get_transitions(self, state: StateIndex) -> List[Tuple[StateIndex, TransitionSymbol]]:
        """
        Enumerate outgoing transitions of a state.

        Returns:
            List of (target, symbol) pairs. Epsilon edges use the EPSILON marker
            and ``.`` edges use WILDCARD, neither of which equals any character.
        """
        node = self.states[state]
        result: List[Tuple[StateIndex, TransitionSymbol]] = []
        for symbol, targets in node.transitions.items():
            result.extend((target, symbol) for target in targets)
        result.extend((target, EPSILON) for target in node.epsilon)
        return result

    def alphabet(self) -> Set[str]:
        """Concrete input characters labelling at least one transition (WILDCARD excluded)."""
        return {
            symbol
            for state in self.states
            for symbol in state.transitions
            if isinstance(symbol, str)
        }

    def has_wildcard(self) -> bool:
        return any(WILDCARD in state.transitions for state in self.states)

    def to_dataframe(self) -> pd.DataFrame:
        """
        Edge list suitable for rendering a diagram.

        Returns:
            DataFrame with columns source, symbol, target, is_epsilon,
            source_final, target_final. ``symbol`` holds the printable label.
        """
        rows = [
            {
                'source': state.state_id,
                'symbol': symbol_label(symbol),
                'target': target,
                'is_epsilon': symbol is EPSILON,
                'source_final': state.is_accept,
                'target_final': self.states[target].is_accept,
            }
            for state in self.states
            for target, symbol in self.get_transitions(state.state_id)
        ]
        return pd.DataFrame(rows, columns=['source', 'symbol', 'target', 'is_epsilon',
                                           'source_final', 'target_final'])

    def describe(self) -> str:
        """Readable multi-line listing of every state and its transitions."""
        lines = []
        for state in self.states:
            marker = " [FINAL]" if state.is_accept else ""
            start = " [START]" if state.state_id == self.start else ""
            lines.append(f"State q{state.state_id}{start}{marker}:")
            for target, symbol in self.get_transitions(state.state_id):
                lines.append(f"  q{state.state_id} --{symbol_label(symbol)}--> q{target}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (f"NFA(states={len(self.states)}, start={self.start}, "
                f"finals={sorted(self.final_states)})")


class NFABuilder:
    """
    Thompson-construction builder producing an NFA from a regex postfix stream.

    Fragments are (start, accept) index pairs kept on a stack. Operators with
    too few operands are skipped, and fragments left over at the end are
    concatenated left-to-right, so malformed patterns degrade to a
    best-effort automaton instead of failing.
    """

    def __init__(self):
        self.states: List[NFAState] = []

    def new_state(self, is_accept: bool = False) -> StateIndex:
        """Append a new state to the arena and return its index."""
        index = len(self.states)
        self.states.append(NFAState(index, is_accept))
        return index

    def add_transition(self, source: StateIndex, target: StateIndex, symbol: TransitionSymbol) -> None:
        self._check_index(source)
        self._check_index(target)
        self.states[source].add_transition(symbol, target)

    def add_epsilon(self, source: StateIndex, target: StateIndex) -> None:
        self._check_index(source)
        self._check_index(target)
        self.states[source].add_epsilon(target)

    def _check_index(self, index: StateIndex) -> None:
        if not (0 <= index < len(self.states)):
            raise AutomatonStructureError(f"Unknown state index {index}")

    def _symbol_fragment(self, token: RegexToken) -> Fragment:
        start = self.new_state()
        accept = self.new_state()
        if token.type == RegexTokenType.EMPTY:
            self.add_epsilon(start, accept)
            return start, accept
        symbol = WILDCARD if token.type == RegexTokenType.WILDCARD else token.value
        self.add_transition(start, accept, symbol)
        return start, accept

    def _concatenate(self, first: Fragment, second: Fragment) -> Fragment:
        self.add_epsilon(first[1], second[0])
        return first[0], second[1]

    def _alternate(self, first: Fragment, second: Fragment) -> Fragment:
        start = self.new_state()
        accept = self.new_state()
        self.add_epsilon(start, first[0])
        self.add_epsilon(start, second[0])
        self.add_epsilon(first[1], accept)
        self.add_epsilon(second[1], accept)
        return start, accept

    def _star(self, inner: Fragment) -> Fragment:
        start = self.new_state()
        accept = self.new_state()
        self.add_epsilon(start, inner[0])
        self.add_epsilon(start, accept)
        self.add_epsilon(inner[1], inner[0])
        self.add_epsilon(inner[1], accept)
        return start, accept

    def _plus(self, inner: Fragment) -> Fragment:
        # One mandatory pass through ``inner``; the star loop shares its accept state
        accept = self.new_state()
        self.add_epsilon(inner[1], inner[0])
        self.add_epsilon(inner[1], accept)
        return inner[0], accept

    def _optional(self, inner: Fragment) -> Fragment:
        start = self.new_state()
        accept = self.new_state()
        self.add_epsilon(start, inner[0])
        self.add_epsilon(start, accept)
        self.add_epsilon(inner[1], accept)
        return start, accept

    def build(self, postfix: List[RegexToken]) -> NFA:
        """
        Build an NFA from a postfix token stream.

        Args:
            postfix: Tokens in postfix order, as produced by ``regex_to_postfix``

        Returns:
            NFA: Automaton with a single start state and a single final state
        """
        stack: List[Fragment] = []
        binary_ops = {
            RegexTokenType.CONCAT: self._concatenate,
            RegexTokenType.ALTERNATION: self._alternate,
        }
        unary_ops = {
            RegexTokenType.STAR: self._star,
            RegexTokenType.PLUS: self._plus,
            RegexTokenType.OPTIONAL: self._optional,
        }

        for token in postfix:
            if token.type in binary_ops:
                if len(stack) < 2:
                    logger.debug(f"Skipping '{token}' with {len(stack)} operand(s)")
                    continue
                second = stack.pop()
                first = stack.pop()
                stack.append(binary_ops[token.type](first, second))
            elif token.type in unary_ops:
                if not stack:
                    logger.debug(f"Skipping '{token}' with no operand")
                    continue
                stack.append(unary_ops[token.type](stack.pop()))
            else:
                stack.append(self._symbol_fragment(token))

        if not stack:
            only = self.new_state(is_accept=True)
            return NFA(start=only, states=self.states, final_states=[only])

        if len(stack) > 1:
            logger.debug(f"Concatenating {len(stack)} leftover fragments")
        result = stack[0]
        for fragment in stack[1:]:
            result = self._concatenate(result, fragment)

        self.states[result[1]].is_accept = True
        return NFA(start=result[0], states=self.states, final_states=[result[1]])


def compile_regex(pattern: str) -> NFA:
    """
    Compile a pattern into an NFA using Thompson's construction.

    Supports literals, ``.`` (any character), ``|``, postfix ``*``, ``+``,
    ``?`` and parentheses. Never raises; malformed input yields a
    best-effort automaton. The empty pattern yields one state that is both
    start and final.

    Args:
        pattern: Regex pattern string

    Returns:
        NFA recognizing the pattern's language
    """
    with PerformanceTimer(f"compile_regex({pattern!r})"):
        if not pattern:
            builder = NFABuilder()
            only = builder.new_state(is_accept=True)
            nfa = NFA(start=only, states=builder.states, final_states=[only])
        else:
            nfa = NFABuilder().build(regex_to_postfix(pattern))

    logger.debug(f"Compiled {pattern!r} into {nfa!r}")
    return nfa
