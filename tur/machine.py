"""
Tur Execution Engine

Runs a Program one transition at a time.

The machine:
1. Copies the Program's tapes, heads and initial state into its own state
2. step() fires at most one transition and reports Continue or Halt
3. Grows tapes on demand: left of cell 0 and right of the last cell
4. Latches the first Halt until reset()

The Program itself is only read, so one Program can back many machines.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from tur.config import INPUT_BLANK_SYMBOL, MAX_STEPS
from tur.types import (
    CONTINUE,
    Direction,
    ExecutionStep,
    Halt,
    InvalidStateError,
    Mode,
    Program,
    Step,
    Transition,
    UndefinedTransition,
    ValidationError,
)

logger = logging.getLogger(__name__)


class TuringMachine:
    """A multi-tape Turing machine executing one Program."""

    def __init__(self, program: Program):
        if len(program.heads) != len(program.tapes):
            raise InvalidStateError(
                f"Program {program.name!r} has {len(program.heads)} head(s) "
                f"for {len(program.tapes)} tape(s)"
            )
        self._program = program
        self._state = program.initial_state
        self._tapes: list[list[str]] = []
        self._heads: list[int] = []
        self._step_count = 0
        self._halt: Optional[Halt] = None
        self.reset()

    # -- read-only view --

    @property
    def program(self) -> Program:
        return self._program

    @property
    def state(self) -> str:
        return self._state

    @property
    def tapes(self) -> list[list[str]]:
        return [list(tape) for tape in self._tapes]

    @property
    def heads(self) -> list[int]:
        return list(self._heads)

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def blank(self) -> str:
        return self._program.blank

    @property
    def mode(self) -> Mode:
        return self._program.mode

    @property
    def symbols(self) -> tuple[str, ...]:
        """Symbol under each head; the blank where a head is off its tape."""
        return tuple(
            tape[head] if 0 <= head < len(tape) else self.blank
            for tape, head in zip(self._tapes, self._heads)
        )

    @property
    def is_halted(self) -> bool:
        if self._halt is not None:
            return True
        return not self._program.rules.get(self._state)

    def tapes_as_strings(self) -> list[str]:
        return ["".join(tape) for tape in self._tapes]

    def __repr__(self) -> str:
        return (
            f"<TuringMachine {self._program.name!r} state={self._state} "
            f"steps={self._step_count}>"
        )

    # -- setup --

    def reset(self) -> None:
        """Restore the Program's initial configuration."""
        self._state = self._program.initial_state
        self._tapes = [list(tape) for tape in self._program.tapes]
        self._heads = list(self._program.heads)
        self._step_count = 0
        self._halt = None

    def set_tape_content(self, index: int, text: str) -> None:
        """Replace one tape's content; '_' in ``text`` becomes the blank."""
        if not 0 <= index < len(self._tapes):
            raise ValidationError(
                f"Tape index {index} out of range for {len(self._tapes)} tape(s)"
            )
        self._tapes[index] = [
            self.blank if symbol == INPUT_BLANK_SYMBOL else symbol for symbol in text
        ]

    def set_tapes_content(self, texts: Sequence[str]) -> None:
        if len(texts) > len(self._tapes):
            raise ValidationError(
                f"Got {len(texts)} tape inputs for {len(self._tapes)} tape(s)"
            )
        for index, text in enumerate(texts):
            self.set_tape_content(index, text)

    # -- execution --

    def _matches(self, transition: Transition, symbols: tuple[str, ...]) -> bool:
        if len(transition.read) != len(symbols):
            return False
        return all(
            expected == actual
            or (expected == INPUT_BLANK_SYMBOL and actual == self.blank)
            for expected, actual in zip(transition.read, symbols)
        )

    def _find_transition(self, transitions: Iterable[Transition]) -> Optional[Transition]:
        symbols = self.symbols
        for transition in transitions:
            if self._matches(transition, symbols):
                return transition
        return None

    def current_transition(self) -> Optional[Transition]:
        """The transition the next step() would fire, if any."""
        if self._halt is not None:
            return None
        return self._find_transition(self._program.rules.get(self._state, ()))

    def _stop(self, outcome: Halt) -> Halt:
        self._halt = outcome
        logger.debug("Halted in state %s after %d steps", self._state, self._step_count)
        return outcome

    def _grow_right(self) -> None:
        for tape, head in zip(self._tapes, self._heads):
            if head >= len(tape):
                tape.extend([self.blank] * (head - len(tape) + 1))

    def step(self) -> Step:
        """Fire at most one transition.

        Returns CONTINUE after a transition, otherwise a Halt that is
        returned again by every later call until reset().
        """
        if self._halt is not None:
            return self._halt

        transitions = self._program.rules.get(self._state)
        if not transitions:
            return self._stop(Halt())

        self._grow_right()
        transition = self._find_transition(transitions)

        if transition is None:
            if self.mode == Mode.STRICT:
                return self._stop(Halt(UndefinedTransition(self._state, self.symbols)))
            return self._stop(Halt())

        for index, tape in enumerate(self._tapes):
            write = transition.write[index]
            tape[self._heads[index]] = self.blank if write == INPUT_BLANK_SYMBOL else write

            direction = transition.directions[index]
            if direction == Direction.LEFT:
                if self._heads[index] == 0:
                    tape.insert(0, self.blank)
                else:
                    self._heads[index] -= 1
            elif direction == Direction.RIGHT:
                self._heads[index] += 1
                if self._heads[index] >= len(tape):
                    tape.append(self.blank)

        logger.debug(
            "Step %d: %s %s -> %s",
            self._step_count + 1, self._state, transition.label, transition.next_state,
        )
        self._state = transition.next_state
        self._step_count += 1
        return CONTINUE

    def run(self) -> Halt:
        """Step until the machine halts or MAX_STEPS steps have fired."""
        for _ in range(MAX_STEPS):
            outcome = self.step()
            if isinstance(outcome, Halt):
                return outcome

        logger.warning(
            "Program %r did not halt within %d steps", self._program.name, MAX_STEPS
        )
        return Halt(exhausted=True)

    def _snapshot(self) -> ExecutionStep:
        return ExecutionStep(
            state=self._state,
            tapes=tuple(self.tapes_as_strings()),
            heads=tuple(self._heads),
            symbols_read=self.symbols,
            transition=self.current_transition(),
            step=self._step_count,
        )

    def run_to_completion(self) -> list[ExecutionStep]:
        """Run like run() and return the configuration before every fired step."""
        trace = []
        for _ in range(MAX_STEPS):
            snapshot = self._snapshot()
            if isinstance(self.step(), Halt):
                break
            trace.append(snapshot)
        else:
            logger.warning(
                "Program %r did not halt within %d steps", self._program.name, MAX_STEPS
            )
        return trace
