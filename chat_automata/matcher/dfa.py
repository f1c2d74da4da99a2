"""
Deterministic finite automata built from NFAs by subset construction.

This module implements the DFA representation, its simulation, and the
``DFABuilder`` that converts an NFA into an equivalent total DFA.

Features:
- Subset construction keyed by a canonical (sorted, deduplicated) closure key
- Alphabet derived from the NFA, with a configurable default fallback
- "Any other character" class for NFAs that use the ``.`` wildcard
- Completion with one shared non-final dead state
- Traced simulation and pandas export for diagram tooling
"""

from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple
from dataclasses import dataclass, field
from collections import deque

import pandas as pd

from chat_automata.config import AutomataConfig, get_default_config
from chat_automata.matcher.automata import (
    NFA, WILDCARD, AutomatonStructureError, TransitionSymbol, symbol_label
)
from chat_automata.utils.logging_config import get_logger, PerformanceTimer

# Module logger
logger = get_logger(__name__)

# Constants
FAIL_STATE = -1

ClosureKey = Tuple[int, ...]


@dataclass
class DFAState:
    """
    Deterministic state standing for a set of NFA states.

    Attributes:
        state_id: Index of this state inside the owning DFA
        nfa_states: NFA states represented by this DFA state (empty for the dead state)
        is_accept: Whether this is an accepting state
        transitions: Exactly one destination per symbol. The WILDCARD key is the
            "any character outside the alphabet" class.
    """
    state_id: int
    nfa_states: FrozenSet[int] = frozenset()
    is_accept: bool = False
    transitions: Dict[TransitionSymbol, int] = field(default_factory=dict)

    def add_transition(self, symbol: TransitionSymbol, target: int) -> None:
        existing = self.transitions.get(symbol)
        if existing is not None and existing != target:
            raise AutomatonStructureError(
                f"DFA state {self.state_id} already has a transition on "
                f"{symbol_label(symbol)!r} to {existing}, refusing {target}")
        self.transitions[symbol] = target

    @property
    def is_dead(self) -> bool:
        return not self.nfa_states and not self.is_accept


@dataclass
class DFA:
    """
    Deterministic finite automaton.

    Attributes:
        start: Start state index
        states: State arena; ``states[i].state_id == i``
        alphabet: Symbols the DFA is total over (the WILDCARD class included when present)
        dead_state: Index of the shared dead state, or None if none was needed

    Raises:
        AutomatonStructureError: If the start index or any transition target is out of range
    """
    start: int
    states: List[DFAState]
    alphabet: List[TransitionSymbol] = field(default_factory=list)
    dead_state: Optional[int] = None

    def __post_init__(self):
        if not self.states:
            raise AutomatonStructureError("DFA must have at least one state")

        if not (0 <= self.start < len(self.states)):
            raise AutomatonStructureError(f"Start state index {self.start} out of range")

        for index, state in enumerate(self.states):
            if state.state_id != index:
                raise AutomatonStructureError(f"DFA state at index {index} carries id {state.state_id}")
            for target in state.transitions.values():
                if not (0 <= target < len(self.states)):
                    raise AutomatonStructureError(
                        f"DFA state {index} has transition to unknown state {target}")

        self._symbols: Set[str] = {s for s in self.alphabet if isinstance(s, str)}

    def validate(self) -> bool:
        """
        Check determinism and totality over the alphabet.

        Returns:
            bool: True if every state has exactly one in-range edge per alphabet symbol
        """
        for state in self.states:
            for symbol in self.alphabet:
                target = state.transitions.get(symbol)
                if target is None:
                    logger.error(f"DFA state {state.state_id} has no transition on {symbol_label(symbol)!r}")
                    return False
                if not (0 <= target < len(self.states)):
                    logger.error(f"DFA state {state.state_id} has invalid transition target {target}")
                    return False
        return True

    def next_state(self, state: int, char: str) -> int:
        """
        Follow the unique edge for ``char``.

        Characters outside the alphabet use the WILDCARD class edge when the
        DFA has one.

        Returns:
            Destination index, or FAIL_STATE if there is no edge
        """
        transitions = self.states[state].transitions
        target = transitions.get(char)
        if target is None and char not in self._symbols:
            target = transitions.get(WILDCARD)
        return FAIL_STATE if target is None else target

    def simulate(self, text: str) -> bool:
        """
        Run the DFA over ``text``.

        A missing edge rejects immediately; it is never an error.

        Returns:
            bool: True if the state reached after consuming all input is final
        """
        current = self.start
        for char in text:
            current = self.next_state(current, char)
            if current == FAIL_STATE:
                return False
        return self.states[current].is_accept

    def trace(self, text: str) -> Tuple[List[int], List[Tuple[int, str, int]]]:
        """
        Visited states and used edges while processing ``text``.

        Returns:
            (path, edges): ``path`` starts with the start state; ``edges`` holds
            one (from, char, to) triple per consumed character. Both stop at the
            first missing edge.
        """
        current = self.start
        path = [current]
        edges: List[Tuple[int, str, int]] = []

        for char in text:
            target = self.next_state(current, char)
            if target == FAIL_STATE:
                break
            edges.append((current, char, target))
            path.append(target)
            current = target

        return path, edges

    def get_transitions(self, state: int) -> List[Tuple[int, TransitionSymbol]]:
        """List of (target, symbol) pairs leaving ``state``."""
        return [(target, symbol) for symbol, target in self.states[state].transitions.items()]

    def find_accepting_states(self) -> List[int]:
        return [state.state_id for state in self.states if state.is_accept]

    def get_reachable_states(self, from_state: Optional[int] = None) -> Set[int]:
        """
        Get all states reachable from a given state (or the start state).

        Args:
            from_state: Starting state index (defaults to start state)

        Returns:
            Set[int]: Set of reachable state indices
        """
        if from_state is None:
            from_state = self.start

        if not (0 <= from_state < len(self.states)):
            raise ValueError(f"Invalid from_state: {from_state}")

        reachable = {from_state}
        queue = deque([from_state])
        while queue:
            current = queue.popleft()
            for target in self.states[current].transitions.values():
                if target not in reachable:
                    reachable.add(target)
                    queue.append(target)
        return reachable

    def to_dataframe(self) -> pd.DataFrame:
        """
        Edge list suitable for rendering a diagram.

        Returns:
            DataFrame with columns source, symbol, target, source_final, target_final
        """
        rows = [
            {
                'source': state.state_id,
                'symbol': symbol_label(symbol),
                'target': target,
                'source_final': state.is_accept,
                'target_final': self.states[target].is_accept,
            }
            for state in self.states
            for symbol, target in state.transitions.items()
        ]
        return pd.DataFrame(rows, columns=['source', 'symbol', 'target', 'source_final', 'target_final'])

    def transition_table(self) -> pd.DataFrame:
        """State x symbol table of destination indices (-1 where no edge exists)."""
        columns = [symbol_label(symbol) for symbol in self.alphabet]
        table = pd.DataFrame(
            [[state.transitions.get(symbol, FAIL_STATE) for symbol in self.alphabet]
             for state in self.states],
            columns=columns,
        )
        table.index.name = 'state'
        table.insert(0, 'final', [state.is_accept for state in self.states])
        return table

    def describe(self) -> str:
        lines = []
        for state in self.states:
            flags = []
            if state.state_id == self.start:
                flags.append("START")
            if state.is_accept:
                flags.append("FINAL")
            if state.state_id == self.dead_state:
                flags.append("DEAD")
            suffix = f" [{', '.join(flags)}]" if flags else ""
            lines.append(f"State q{state.state_id}{suffix} = {sorted(state.nfa_states)}")
            for symbol, target in state.transitions.items():
                lines.append(f"  q{state.state_id} --{symbol_label(symbol)}--> q{target}")
        return "\n".join(lines)


def closure_key(nfa_states: Iterable[int]) -> ClosureKey:
    """Canonical key for a set of NFA states: sorted, deduplicated indices."""
    return tuple(sorted(set(nfa_states)))


class DFABuilder:
    """
    Subset-construction builder converting an NFA into an equivalent total DFA.

    The alphabet is the set of characters labelling NFA transitions. When the
    NFA has no character-labelled transitions at all, the configured default
    alphabet (ASCII letters, digits and space unless overridden) is used.
    An explicit alphabet adds symbols to the derived one and never removes
    any, so the DFA language stays equal to the NFA's. When the NFA
    contains wildcard edges, the WILDCARD class is added to the alphabet to
    stand for every character outside it.
    """

    def __init__(self, nfa: NFA, alphabet: Optional[Sequence[str]] = None,
                 config: Optional[AutomataConfig] = None):
        """
        Args:
            nfa: Source NFA
            alphabet: Extra symbols added to the NFA-derived alphabet
            config: Configuration providing the default alphabet
        """
        if not isinstance(nfa, NFA):
            raise TypeError(f"Expected NFA instance, got {type(nfa)}")

        self.nfa = nfa
        self.config = config or get_default_config()
        self.alphabet = self._resolve_alphabet(alphabet)

        self.build_stats = {
            'nfa_states': len(nfa.states),
            'dfa_states': 0,
            'transitions_created': 0,
            'dead_state_added': False,
            'build_time': 0.0,
        }

    def _resolve_alphabet(self, alphabet: Optional[Sequence[str]]) -> List[TransitionSymbol]:
        if alphabet is not None:
            # Extra symbols are allowed; NFA labels are never dropped
            symbols = sorted(set(alphabet) | self.nfa.alphabet())
        else:
            symbols = sorted(self.nfa.alphabet())
            if not symbols:
                symbols = sorted(set(self.config.default_alphabet))
                logger.debug(f"NFA has no labelled transitions, using default alphabet of {len(symbols)} symbols")

        resolved: List[TransitionSymbol] = list(symbols)
        if self.nfa.has_wildcard():
            resolved.append(WILDCARD)
        return resolved

    def _step(self, nfa_states: FrozenSet[int], symbol: TransitionSymbol) -> FrozenSet[int]:
        """Exact-symbol and wildcard destinations unioned before closure, then closed."""
        destinations: Set[int] = set()
        for index in nfa_states:
            transitions = self.nfa.states[index].transitions
            if symbol is not WILDCARD:
                destinations.update(transitions.get(symbol, ()))
            destinations.update(transitions.get(WILDCARD, ()))
        if not destinations:
            return frozenset()
        return self.nfa.epsilon_closure(destinations)

    def _is_final(self, nfa_states: FrozenSet[int]) -> bool:
        return not nfa_states.isdisjoint(self.nfa.final_states)

    def build(self) -> DFA:
        """
        Run subset construction and complete the result with a dead state.

        Returns:
            DFA: Total DFA over the resolved alphabet
        """
        with PerformanceTimer("subset_construction") as timer:
            dfa_states: List[DFAState] = []
            state_map: Dict[ClosureKey, int] = {}
            queue = deque()

            def get_or_create(nfa_states: FrozenSet[int]) -> int:
                key = closure_key(nfa_states)
                if key not in state_map:
                    state_map[key] = len(dfa_states)
                    dfa_states.append(DFAState(
                        state_id=len(dfa_states),
                        nfa_states=nfa_states,
                        is_accept=self._is_final(nfa_states),
                    ))
                    queue.append(nfa_states)
                return state_map[key]

            start = get_or_create(self.nfa.epsilon_closure([self.nfa.start]))

            while queue:
                nfa_states = queue.popleft()
                current = state_map[closure_key(nfa_states)]
                for symbol in self.alphabet:
                    target_closure = self._step(nfa_states, symbol)
                    if not target_closure:
                        continue
                    target = get_or_create(target_closure)
                    dfa_states[current].add_transition(symbol, target)
                    self.build_stats['transitions_created'] += 1

            dead_state = self._complete(dfa_states)

        self.build_stats['dfa_states'] = len(dfa_states)
        self.build_stats['build_time'] = timer.duration
        logger.debug(f"Subset construction produced {len(dfa_states)} DFA states "
                    f"from {len(self.nfa.states)} NFA states")

        return DFA(start=start, states=dfa_states, alphabet=list(self.alphabet), dead_state=dead_state)

    def _complete(self, dfa_states: List[DFAState]) -> Optional[int]:
        """Backfill missing edges to one shared dead state; returns its index or None."""
        missing = [
            (state, symbol)
            for state in dfa_states
            for symbol in self.alphabet
            if symbol not in state.transitions
        ]
        if not missing:
            return None

        dead = DFAState(state_id=len(dfa_states))
        for symbol in self.alphabet:
            dead.add_transition(symbol, dead.state_id)
        dfa_states.append(dead)

        for state, symbol in missing:
            state.add_transition(symbol, dead.state_id)

        self.build_stats['dead_state_added'] = True
        logger.debug(f"Added dead state {dead.state_id} for {len(missing)} missing edges")
        return dead.state_id

    def get_build_statistics(self) -> Dict[str, object]:
        return dict(self.build_stats)


def nfa_to_dfa(nfa: NFA, alphabet: Optional[Sequence[str]] = None,
               config: Optional[AutomataConfig] = None) -> DFA:
    """
    Convert an NFA into an equivalent DFA via subset construction.

    Args:
        nfa: Source NFA
        alphabet: Optional extra symbols, unioned with the NFA's own labels
        config: Optional configuration providing the default alphabet

    Returns:
        DFA accepting exactly the NFA's language
    """
    return DFABuilder(nfa, alphabet=alphabet, config=config).build()
