"""
Tur Program Analyzer

Semantic validation of a parsed Program. Checks run in a fixed order and
the first failure is raised, so a given bad program always reports the
same error:

1. Structure: tapes present, one head per tape, transition arity
2. Head bounds: every head inside its (non-empty) tape
3. Start state: the initial state has a rules entry
4. Reachability: every rules state reachable from the initial state
5. Coverage: every initial tape symbol is read by some transition

The state graph behind the reachability check is a networkx DiGraph
(nodes = states, edges = transitions) and is also exposed for tooling.
Nothing here mutates the Program.
"""

from __future__ import annotations

import logging
from typing import Iterable

import networkx as nx

from tur.config import HALT_STATE
from tur.types import Program, ValidationError

logger = logging.getLogger(__name__)


# ============================================================================
# Errors
# ============================================================================

class AnalysisError(ValidationError):
    """Base class for analyzer failures."""


class StructuralError(AnalysisError):
    pass


class InvalidHead(AnalysisError):
    def __init__(self, position: int, tape: int = 0):
        super().__init__(f"Invalid head position: {position}")
        self.position = position
        self.tape = tape


class InvalidStartState(AnalysisError):
    def __init__(self, state: str):
        super().__init__(f"Invalid start state: {state}")
        self.state = state


class UnreachableStates(AnalysisError):
    def __init__(self, states: Iterable[str]):
        self.states = list(states)
        super().__init__(f"Unreachable states detected: {self.states!r}")


class InvalidTapeSymbols(AnalysisError):
    def __init__(self, symbols: Iterable[str]):
        self.symbols = list(symbols)
        super().__init__(
            f"Initial tape contains symbols not handled by any transition: {self.symbols!r}"
        )


class UndefinedNextStates(AnalysisError):
    def __init__(self, references: Iterable[str]):
        self.references = list(references)
        super().__init__(
            f"Transitions reference undefined states: {', '.join(self.references)}"
        )


# ============================================================================
# State graph
# ============================================================================

def state_graph(program: Program) -> nx.DiGraph:
    """Build the directed state graph of a program.

    Every rules state, the initial state and every transition target is a
    node. Parallel transitions between the same pair of states collapse into
    one edge whose ``labels`` attribute lists them in declaration order.
    """
    graph = nx.DiGraph(name=program.name)
    graph.add_node(program.initial_state)
    graph.add_nodes_from(program.rules.keys())

    for state, transitions in program.rules.items():
        for transition in transitions:
            target = transition.next_state
            if graph.has_edge(state, target):
                graph[state][target]["labels"].append(transition.label)
            else:
                graph.add_edge(state, target, labels=[transition.label])

    return graph


def reachable_states(program: Program) -> set[str]:
    """States reachable from the initial state, the initial state included."""
    graph = state_graph(program)
    return {program.initial_state} | nx.descendants(graph, program.initial_state)


# ============================================================================
# Checks
# ============================================================================

def check_structure(program: Program) -> None:
    if not program.tapes:
        raise StructuralError("Program must define at least one tape")

    tape_count = len(program.tapes)
    if len(program.heads) != tape_count:
        raise StructuralError(
            f"Number of head positions ({len(program.heads)}) does not match "
            f"number of tapes ({tape_count})"
        )

    for state, transitions in program.rules.items():
        for index, transition in enumerate(transitions):
            arities = {
                len(transition.read),
                len(transition.write),
                len(transition.directions),
            }
            if arities != {tape_count}:
                raise StructuralError(
                    f"Transition {index} of state '{state}' does not match "
                    f"number of tapes ({tape_count}): read={len(transition.read)}, "
                    f"write={len(transition.write)}, "
                    f"directions={len(transition.directions)}"
                )


def check_heads(program: Program) -> None:
    for index, (tape, head) in enumerate(zip(program.tapes, program.heads)):
        if head < 0 or (tape and head >= len(tape)):
            raise InvalidHead(head, index)


def check_start_state(program: Program) -> None:
    if program.initial_state not in program.rules:
        raise InvalidStartState(program.initial_state)


def check_reachability(program: Program) -> None:
    reachable = reachable_states(program)
    unreachable = sorted(
        state for state in program.rules
        if state not in reachable and state != HALT_STATE
    )
    if unreachable:
        raise UnreachableStates(unreachable)


def check_tape_symbols(program: Program) -> None:
    covered = {program.blank}
    for transitions in program.rules.values():
        for transition in transitions:
            covered.update(transition.read)

    on_tape = {symbol for tape in program.tapes for symbol in tape}
    missing = sorted(on_tape - covered)
    if missing:
        raise InvalidTapeSymbols(missing)


def check_undefined_next_states(program: Program) -> None:
    """Reject transitions whose target is neither a rules state nor halt.

    Kept apart from analyze(): such a transition simply halts the machine
    when it fires, which some programs rely on.
    """
    references = []
    for state, transitions in program.rules.items():
        for index, transition in enumerate(transitions):
            target = transition.next_state
            if target not in program.rules and target != HALT_STATE:
                references.append(f"{state}[{index}] -> {target}")
    if references:
        raise UndefinedNextStates(references)


CHECKS = (
    check_structure,
    check_heads,
    check_start_state,
    check_reachability,
    check_tape_symbols,
)


def analyze(program: Program) -> None:
    """Run every check in order, raising the first failure."""
    for check in CHECKS:
        check(program)
    logger.debug("Program %r passed analysis", program.name)
