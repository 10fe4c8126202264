"""
Tur Data Model

Program, Transition, Direction and Mode are the values every other module
exchanges. They are frozen once built: the parser and the decoder create
Programs, the machine only reads them, the analyzer only inspects them.

Also defined here:
- Span: a source location carried by errors so callers can highlight text
- Continue / Halt: the outcome of one machine step
- ExecutionStep: a snapshot of machine configuration, for traces
- The error taxonomy shared by all modules
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Union

from tur.config import DEFAULT_BLANK_SYMBOL


# ============================================================================
# Enumerations
# ============================================================================

class Direction(Enum):
    """Head movement after a transition fires."""
    LEFT = "L"
    RIGHT = "R"
    STAY = "S"


class Mode(Enum):
    """What the machine does when no transition matches.

    NORMAL halts cleanly (classical automata semantics). STRICT halts with
    an UndefinedTransition error describing the state and symbols.
    """
    NORMAL = "normal"
    STRICT = "strict"


# ============================================================================
# Source positions
# ============================================================================

@dataclass(frozen=True)
class Span:
    """A region of program source.

    Attributes:
        start: Character offset of the first character
        end: Character offset one past the last character
        line: 1-based line of ``start``
        col: 1-based column of ``start``
    """
    start: int
    end: int
    line: int
    col: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def __repr__(self) -> str:
        return f"<Span {self.line}:{self.col} [{self.start}:{self.end}]>"


# ============================================================================
# Errors
# ============================================================================

class TuringMachineError(Exception):
    """Base class for every error raised by tur."""

    def __init__(self, message: str, span: Optional[Span] = None):
        super().__init__(message)
        self.message = message
        self.span = span

    def __str__(self) -> str:
        if self.span is None:
            return self.message
        return f"Line {self.span.line}, Col {self.span.col}: {self.message}"


class ParseError(TuringMachineError):
    """Malformed program source. Always carries the offending span."""

    def __init__(self, message: str, span: Span):
        super().__init__(message, span)


class ValidationError(TuringMachineError):
    """A well-formed program that is not a legal machine."""


class InvalidStateError(TuringMachineError):
    """Internal inconsistency between a program and the machine running it."""


class FileError(TuringMachineError):
    """A program file or directory could not be read."""


class UndefinedTransition(TuringMachineError):
    """No transition matched in STRICT mode.

    Carried as ``Halt.error``; the machine never raises it.
    """

    def __init__(self, state: str, symbols: Sequence[str]):
        self.state = state
        self.symbols = tuple(symbols)
        super().__init__(
            f"No transition defined for state {state} and symbols {list(self.symbols)!r}"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UndefinedTransition):
            return NotImplemented
        return self.state == other.state and self.symbols == other.symbols

    def __hash__(self) -> int:
        return hash((self.state, self.symbols))


# ============================================================================
# Program model
# ============================================================================

@dataclass(frozen=True)
class Transition:
    """One rule of a state: fires when every tape's symbol matches ``read``.

    Attributes:
        read: Expected symbol per tape ('_' matches the program's blank)
        write: Symbol written per tape ('_' writes the program's blank)
        directions: Head movement per tape
        next_state: State entered after the transition
    """
    read: tuple[str, ...]
    write: tuple[str, ...]
    directions: tuple[Direction, ...]
    next_state: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "read", tuple(self.read))
        object.__setattr__(self, "write", tuple(self.write))
        object.__setattr__(self, "directions", tuple(self.directions))

    @property
    def tape_count(self) -> int:
        return len(self.read)

    @property
    def label(self) -> str:
        """Compact human-readable form, e.g. ``a/b,R`` or ``[a,x]/[b,y],[R,R]``."""
        dirs = [d.value for d in self.directions]
        if len(self.read) == 1:
            return f"{self.read[0]}/{self.write[0]},{dirs[0]}"
        return (
            f"[{','.join(self.read)}]/[{','.join(self.write)}],"
            f"[{','.join(dirs)}]"
        )

    def __repr__(self) -> str:
        return f"<Transition {self.label} -> {self.next_state}>"


@dataclass(frozen=True)
class Program:
    """A complete Turing machine definition.

    ``rules`` maps each state to its transitions in declaration order. It is
    stored as a read-only mapping; ``tapes`` and ``heads`` are tuples.
    """
    name: str
    initial_state: str
    tapes: tuple[str, ...]
    heads: tuple[int, ...]
    rules: Mapping[str, tuple[Transition, ...]]
    blank: str = DEFAULT_BLANK_SYMBOL
    mode: Mode = Mode.NORMAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "tapes", tuple(self.tapes))
        object.__setattr__(self, "heads", tuple(self.heads))
        object.__setattr__(
            self,
            "rules",
            MappingProxyType({state: tuple(ts) for state, ts in self.rules.items()}),
        )

    def __hash__(self) -> int:
        # MappingProxyType is unhashable; equal programs still hash equal
        return hash((self.name, self.initial_state, self.tapes, self.heads, self.blank, self.mode))

    @property
    def initial_tape(self) -> str:
        """Content of the first tape."""
        return self.tapes[0] if self.tapes else ""

    @property
    def head_position(self) -> int:
        """Initial head of the first tape."""
        return self.heads[0] if self.heads else 0

    @property
    def tape_count(self) -> int:
        return len(self.tapes)

    @property
    def is_single_tape(self) -> bool:
        return len(self.tapes) == 1

    @property
    def states(self) -> list[str]:
        """Every state identifier the program mentions, sorted."""
        names = {self.initial_state, *self.rules.keys()}
        for transitions in self.rules.values():
            names.update(t.next_state for t in transitions)
        return sorted(names)

    @property
    def transition_count(self) -> int:
        return sum(len(ts) for ts in self.rules.values())

    def __repr__(self) -> str:
        return (
            f"<Program {self.name!r}: {self.tape_count} tape(s), "
            f"{len(self.rules)} states, {self.transition_count} transitions, "
            f"start={self.initial_state}>"
        )


# ============================================================================
# Execution outcomes
# ============================================================================

@dataclass(frozen=True)
class Continue:
    """A transition fired; the machine can step again."""

    def __repr__(self) -> str:
        return "<Continue>"


@dataclass(frozen=True)
class Halt:
    """The machine stopped.

    Attributes:
        error: None for a clean halt, UndefinedTransition for a STRICT stop
        exhausted: True when run() hit its step budget rather than a halt
    """
    error: Optional[UndefinedTransition] = None
    exhausted: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        if self.error is not None:
            return f"<Halt error={self.error}>"
        return "<Halt exhausted>" if self.exhausted else "<Halt ok>"


Step = Union[Continue, Halt]

CONTINUE = Continue()


@dataclass(frozen=True)
class ExecutionStep:
    """Machine configuration just before a step."""
    state: str
    tapes: tuple[str, ...]
    heads: tuple[int, ...]
    symbols_read: tuple[str, ...]
    transition: Optional[Transition] = None
    step: int = 0

    @property
    def tape(self) -> str:
        return self.tapes[0] if self.tapes else ""

    @property
    def head_position(self) -> int:
        return self.heads[0] if self.heads else 0
