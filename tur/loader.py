"""
Program loading from files, directories and strings.

The parser only ever sees text; this module owns the file system side.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from tur.parser import parse
from tur.types import FileError, Program, TuringMachineError

logger = logging.getLogger(__name__)

PROGRAM_SUFFIX = ".tur"


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading one file from a directory."""
    path: Path
    program: Optional[Program] = None
    error: Optional[TuringMachineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        status = "ok" if self.ok else f"error={self.error}"
        return f"<LoadResult {self.path.name} {status}>"


class ProgramLoader:
    """Reads ``.tur`` sources and hands them to the parser."""

    @staticmethod
    def load_program_from_string(text: str) -> Program:
        return parse(text)

    @staticmethod
    def load_program(path: Union[str, Path]) -> Program:
        """Read and parse one program file.

        Raises:
            FileError: the file cannot be read
            ParseError, ValidationError: the content is not a valid program
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FileError(f"Failed to read file {path}: {exc}") from exc
        return parse(text)

    @classmethod
    def load_programs(cls, directory: Union[str, Path]) -> list[LoadResult]:
        """Load every ``.tur`` file in ``directory``, sorted by file name.

        A bad file does not stop the others; its LoadResult carries the
        error instead of a program.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileError(f"Directory {directory} does not exist")

        try:
            paths = sorted(
                entry for entry in directory.iterdir()
                if entry.is_file() and entry.suffix == PROGRAM_SUFFIX
            )
        except OSError as exc:
            raise FileError(f"Failed to read directory {directory}: {exc}") from exc

        results = []
        for path in paths:
            try:
                results.append(LoadResult(path, program=cls.load_program(path)))
            except TuringMachineError as exc:
                logger.warning("Skipping %s: %s", path, exc)
                results.append(LoadResult(path, error=exc))
        return results
