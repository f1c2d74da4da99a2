"""
Pushdown automata driven by explicit transition tables.

A PDA is a node arena plus 4-tuple transitions
(input symbol or EPSILON_INPUT, pop symbol or NO_POP, push string, target).
The stack starts with a bottom marker. Simulation explores every
configuration breadth-first, bounded by a maximum stack depth.

The factory configurations (balanced brackets, nested formatting, toxic
content in brackets) describe the same languages the direct simulators in
``structure_validators`` check, in a form suitable for tabular export.
"""

from typing import Dict, FrozenSet, List, Optional, Set, Tuple, Union
from dataclasses import dataclass, field
from collections import deque

import pandas as pd

from chat_automata.config import AutomataConfig, get_default_config
from chat_automata.matcher.automata import AutomatonStructureError, Symbol
from chat_automata.utils.logging_config import get_logger

# Module logger
logger = get_logger(__name__)

BOTTOM_MARKER = '$'
EPSILON_INPUT = None
NO_POP = None

# Input label matching any character no explicit transition of the same state consumes
OTHER = Symbol.WILDCARD

OPENING_BRACKETS = "([{<"
CLOSING_BRACKETS = ")]}>"
BRACKET_PAIRS = dict(zip(CLOSING_BRACKETS, OPENING_BRACKETS))

InputSymbol = Union[str, Symbol, None]
Configuration = Tuple[int, int, Tuple[str, ...]]


@dataclass(frozen=True)
class PDATransition:
    """
    A single PDA move.

    Attributes:
        input_symbol: Character to consume, OTHER, or EPSILON_INPUT (consume nothing)
        pop_symbol: Stack symbol that must be on top and is popped, or NO_POP
        push: String pushed one character at a time in order (last character ends on top)
        target: Destination node index
    """
    input_symbol: InputSymbol
    pop_symbol: Optional[str]
    push: str
    target: int

    def __post_init__(self):
        if self.target < 0:
            raise AutomatonStructureError(f"Target node index must be non-negative, got {self.target}")
        if isinstance(self.input_symbol, str) and len(self.input_symbol) != 1:
            raise AutomatonStructureError(f"Input symbol must be a single character, got {self.input_symbol!r}")
        if self.pop_symbol is not None and len(self.pop_symbol) != 1:
            raise AutomatonStructureError(f"Pop symbol must be a single character, got {self.pop_symbol!r}")

    @property
    def consumes_input(self) -> bool:
        return self.input_symbol is not EPSILON_INPUT

    def label(self) -> str:
        read = "ε" if self.input_symbol is None else str(self.input_symbol)
        pop = "ε" if self.pop_symbol is None else self.pop_symbol
        push = self.push or "ε"
        return f"{read} / {pop} → {push}"


@dataclass
class PDANode:
    """PDA node: id, final flag and outgoing transitions."""
    state_id: int
    is_accept: bool = False
    description: str = ""
    transitions: List[PDATransition] = field(default_factory=list)

    def explicit_inputs(self) -> FrozenSet[str]:
        return frozenset(t.input_symbol for t in self.transitions if isinstance(t.input_symbol, str))


class PDA:
    """
    Pushdown automaton with a transition table and breadth-first simulation.

    Args:
        config: Optional configuration providing the maximum stack depth
    """

    def __init__(self, config: Optional[AutomataConfig] = None):
        self.nodes: List[PDANode] = []
        self.start = 0
        self.initial_stack_symbol = BOTTOM_MARKER
        self.config = config or get_default_config()
        self._explicit_inputs: Dict[int, FrozenSet[str]] = {}

    @property
    def final_states(self) -> FrozenSet[int]:
        return frozenset(node.state_id for node in self.nodes if node.is_accept)

    def add_node(self, is_final: bool = False, description: str = "") -> int:
        index = len(self.nodes)
        self.nodes.append(PDANode(index, is_final, description))
        return index

    def set_start_state(self, state: int) -> None:
        self._check_index(state)
        self.start = state

    def add_transition(self, source: int, target: int, input_symbol: InputSymbol,
                       pop_symbol: Optional[str], push: str = "") -> None:
        self._check_index(source)
        self._check_index(target)
        self.nodes[source].transitions.append(PDATransition(input_symbol, pop_symbol, push, target))
        self._explicit_inputs.pop(source, None)

    def _check_index(self, index: int) -> None:
        if not (0 <= index < len(self.nodes)):
            raise AutomatonStructureError(f"Unknown PDA node {index}")

    def available_transitions(self, state: int, stack_top: Optional[str]) -> List[PDATransition]:
        """Transitions of ``state`` whose pop requirement is NO_POP or equals the stack top."""
        return [
            t for t in self.nodes[state].transitions
            if t.pop_symbol is NO_POP or t.pop_symbol == stack_top
        ]

    def _reads(self, state: int, transition: PDATransition, char: str) -> bool:
        if transition.input_symbol is OTHER:
            if state not in self._explicit_inputs:
                self._explicit_inputs[state] = self.nodes[state].explicit_inputs()
            return char not in self._explicit_inputs[state]
        return transition.input_symbol == char

    @staticmethod
    def apply(stack: Tuple[str, ...], transition: PDATransition) -> Tuple[str, ...]:
        """Pop if required, then push the push string verbatim, one character at a time."""
        if transition.pop_symbol is not NO_POP:
            stack = stack[:-1]
        return stack + tuple(transition.push)

    def simulate(self, text: str) -> bool:
        """
        Accept iff some run consumes all of ``text`` and ends in a final node.

        Runs whose stack would exceed the configured maximum depth are pruned.
        """
        if not self.nodes:
            return False

        max_depth = self.config.max_stack_depth
        initial: Configuration = (self.start, 0, (self.initial_stack_symbol,))
        seen: Set[Configuration] = {initial}
        queue = deque([initial])
        pruned = 0

        while queue:
            state, position, stack = queue.popleft()
            if position == len(text) and self.nodes[state].is_accept:
                return True

            top = stack[-1] if stack else None
            for transition in self.available_transitions(state, top):
                if transition.consumes_input:
                    if position >= len(text) or not self._reads(state, transition, text[position]):
                        continue
                    next_position = position + 1
                else:
                    next_position = position

                next_stack = self.apply(stack, transition)
                if len(next_stack) > max_depth:
                    pruned += 1
                    continue

                configuration = (transition.target, next_position, next_stack)
                if configuration not in seen:
                    seen.add(configuration)
                    queue.append(configuration)

        if pruned:
            logger.debug(f"PDA simulation pruned {pruned} move(s) exceeding stack depth {max_depth}")
        return False

    def to_dataframe(self) -> pd.DataFrame:
        """Edge list with columns source, target, input, pop, push, label."""
        rows = [
            {
                'source': node.state_id,
                'target': t.target,
                'input': "ε" if t.input_symbol is None else str(t.input_symbol),
                'pop': "ε" if t.pop_symbol is None else t.pop_symbol,
                'push': t.push,
                'label': t.label(),
            }
            for node in self.nodes
            for t in node.transitions
        ]
        return pd.DataFrame(rows, columns=['source', 'target', 'input', 'pop', 'push', 'label'])

    def describe(self) -> str:
        lines = []
        for node in self.nodes:
            flags = " [FINAL]" if node.is_accept else ""
            title = f" ({node.description})" if node.description else ""
            lines.append(f"State q{node.state_id}{title}{flags}:")
            for t in node.transitions:
                lines.append(f"  q{node.state_id} --{t.label()}--> q{t.target}")
        return "\n".join(lines)


class PDAFactory:
    """Factory configurations for the structural languages."""

    @staticmethod
    def _add_bracket_moves(pda: PDA, state: int) -> None:
        for opener in OPENING_BRACKETS:
            pda.add_transition(state, state, opener, NO_POP, opener)
        for closer, opener in BRACKET_PAIRS.items():
            pda.add_transition(state, state, closer, opener, "")

    @staticmethod
    def balanced_brackets(config: Optional[AutomataConfig] = None) -> PDA:
        """Brackets ``()[]{}<>`` properly nested; every other character is ignored."""
        pda = PDA(config)
        scan = pda.add_node(description="Scan")
        accept = pda.add_node(is_final=True, description="Accept")

        PDAFactory._add_bracket_moves(pda, scan)
        pda.add_transition(scan, scan, OTHER, NO_POP)
        pda.add_transition(scan, accept, EPSILON_INPUT, BOTTOM_MARKER, "")
        return pda

    @staticmethod
    def formatting(config: Optional[AutomataConfig] = None) -> PDA:
        """
        Nested formatting markers.

        ``*`` and ``~`` are self-pairing markers (``I`` and ``S`` on the stack), so
        ``**`` and ``~~`` are read as two markers each. Brackets nest as in
        ``balanced_brackets``.
        """
        pda = PDA(config)
        scan = pda.add_node(description="Scan text")
        accept = pda.add_node(is_final=True, description="Valid structure")

        PDAFactory._add_bracket_moves(pda, scan)
        for marker, stack_symbol in (('*', 'I'), ('~', 'S')):
            pda.add_transition(scan, scan, marker, stack_symbol, "")
            pda.add_transition(scan, scan, marker, NO_POP, stack_symbol)
        pda.add_transition(scan, scan, OTHER, NO_POP)
        pda.add_transition(scan, accept, EPSILON_INPUT, BOTTOM_MARKER, "")
        return pda

    @staticmethod
    def toxic_detection(config: Optional[AutomataConfig] = None) -> PDA:
        """
        Bracket scanner with an explicit "inside brackets" node and a word-boundary node.

        The word-boundary node marks where bracket content is split into words
        for toxicity checks; the recognized language is balanced brackets.
        """
        pda = PDA(config)
        outside = pda.add_node(description="Start/Scan")
        inside = pda.add_node(description="Inside Brackets")
        boundary = pda.add_node(description="Word Boundary")
        accept = pda.add_node(is_final=True, description="Accept")

        for opener in OPENING_BRACKETS:
            pda.add_transition(outside, inside, opener, BOTTOM_MARKER, BOTTOM_MARKER + opener)
        # Only the bottom marker is ever on top here, so a closer outside brackets is stuck
        for closer, opener in BRACKET_PAIRS.items():
            pda.add_transition(outside, outside, closer, opener, "")
        pda.add_transition(outside, outside, OTHER, NO_POP)

        PDAFactory._add_bracket_moves(pda, inside)
        pda.add_transition(inside, boundary, ' ', NO_POP)
        pda.add_transition(inside, inside, OTHER, NO_POP)
        pda.add_transition(inside, outside, EPSILON_INPUT, BOTTOM_MARKER, BOTTOM_MARKER)

        pda.add_transition(boundary, inside, EPSILON_INPUT, NO_POP)
        pda.add_transition(outside, accept, EPSILON_INPUT, BOTTOM_MARKER, "")
        return pda
