"""
Tur - a Turing machine language
Parse, validate, run and share deterministic multi-tape Turing machines.

Parser:   DSL text → validated Program, with source spans on every error
Analyzer: structure, head bounds, start state, reachability, symbol coverage
Machine:  stepwise interpreter with growing tapes and normal/strict halting
Encoder:  canonical one-line form of single-tape programs
"""

__version__ = "0.1.0"

from tur.types import (
    Continue,
    Direction,
    ExecutionStep,
    FileError,
    Halt,
    InvalidStateError,
    Mode,
    ParseError,
    Program,
    Span,
    Step,
    Transition,
    TuringMachineError,
    UndefinedTransition,
    ValidationError,
)
from tur.analyzer import analyze
from tur.parser import parse
from tur.machine import TuringMachine
from tur.encoder import EncodingError, decode, encode
from tur.loader import ProgramLoader
from tur.programs import ProgramCatalog, default_catalog

__all__ = [
    "Continue",
    "Direction",
    "ExecutionStep",
    "FileError",
    "Halt",
    "InvalidStateError",
    "Mode",
    "ParseError",
    "Program",
    "Span",
    "Step",
    "Transition",
    "TuringMachineError",
    "UndefinedTransition",
    "ValidationError",
    "analyze",
    "parse",
    "TuringMachine",
    "EncodingError",
    "decode",
    "encode",
    "ProgramLoader",
    "ProgramCatalog",
    "default_catalog",
]
