"""
Built-in example programs.

ProgramCatalog is a read-only provider of parsed programs: it is handed
its source texts, parses them once and serves Programs by index or name.
default_catalog() builds the catalog of the examples below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Iterator

from tur.parser import parse
from tur.types import Program, TuringMachineError, ValidationError

logger = logging.getLogger(__name__)


BINARY_COUNTER = """\
name: Binary Counter
tape: 1, 0, 1, 1
rules:
  start:
    0 -> 0, R, start
    1 -> 1, R, start
    _ -> _, L, inc
  inc:
    1 -> 0, L, inc
    0 -> 1, S, done
    _ -> 1, S, done
  done:
"""

EVEN_NUMBER_CHECKER = """\
name: Even Number Checker
tape: 1, 0, 1, 0
rules:
  start:
    0 -> 0, R, start
    1 -> 1, R, start
    _ -> _, L, check
  check:
    0 -> 0, S, accept
    1 -> 1, S, reject
  accept:
  reject:
"""

BUSY_BEAVER_3 = """\
name: Busy Beaver 3
blank: 0
tape: 0
rules:
  A:
    0 -> 1, R, B
    1 -> 1, L, C
  B:
    0 -> 1, L, A
    1 -> 1, R, B
  C:
    0 -> 1, L, B
    1 -> 1, S, halt
"""

MULTI_TAPE_COPY = """\
name: Multi-Tape Copy
tapes:
  [a, b, c]
  [_]
rules:
  copy:
    [a, _] -> [a, a], [R, R], copy
    [b, _] -> [b, b], [R, R], copy
    [c, _] -> [c, c], [R, R], copy
    [_, _] -> [_, _], [S, S], done
  done:
"""

BUILTIN_PROGRAMS = (
    BINARY_COUNTER,
    EVEN_NUMBER_CHECKER,
    BUSY_BEAVER_3,
    MULTI_TAPE_COPY,
)


@dataclass(frozen=True)
class ProgramInfo:
    """Summary of a catalog program, for listings."""
    index: int
    name: str
    initial_state: str
    initial_tape: str
    tape_count: int
    state_count: int
    transition_count: int


class ProgramCatalog:
    """Parsed programs served by index or name.

    Texts that fail to parse are logged and left out, so indices always
    refer to valid programs.
    """

    def __init__(self, texts: Iterable[str]):
        self._entries: list[tuple[str, Program]] = []
        for text in texts:
            try:
                program = parse(text)
            except TuringMachineError as exc:
                logger.warning("Skipping invalid catalog program: %s", exc)
                continue
            self._entries.append((text, program))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Program]:
        return (program for _, program in self._entries)

    def __repr__(self) -> str:
        return f"<ProgramCatalog: {len(self)} programs>"

    def _entry(self, index: int) -> tuple[str, Program]:
        if not 0 <= index < len(self._entries):
            raise ValidationError(f"Program index {index} out of range")
        return self._entries[index]

    def get(self, index: int) -> Program:
        return self._entry(index)[1]

    def text(self, index: int) -> str:
        """Source text the program at ``index`` was parsed from."""
        return self._entry(index)[0]

    def get_by_name(self, name: str) -> Program:
        for _, program in self._entries:
            if program.name == name:
                return program
        raise ValidationError(f"Program '{name}' not found")

    def index_of(self, name: str) -> int:
        for index, (_, program) in enumerate(self._entries):
            if program.name == name:
                return index
        raise ValidationError(f"Program '{name}' not found")

    def names(self) -> list[str]:
        return [program.name for _, program in self._entries]

    def info(self, index: int) -> ProgramInfo:
        program = self.get(index)
        return ProgramInfo(
            index=index,
            name=program.name,
            initial_state=program.initial_state,
            initial_tape=program.initial_tape,
            tape_count=program.tape_count,
            state_count=len(program.states),
            transition_count=program.transition_count,
        )

    def search(self, query: str) -> list[int]:
        """Indices of programs whose name contains ``query``, ignoring case."""
        query = query.lower()
        return [
            index for index, (_, program) in enumerate(self._entries)
            if query in program.name.lower()
        ]


@lru_cache(maxsize=None)
def default_catalog() -> ProgramCatalog:
    return ProgramCatalog(BUILTIN_PROGRAMS)
