"""
Tur Canonical Encoding

A compact, single-line form of a single-tape program, suitable for pasting
into a URL or feeding a universal machine:

    name:tape:rules

- tape: comma-separated cells, written literally ('_' decodes as the blank)
- rules: '|'-separated quintuples ``state,read,write,direction,next``

State names are replaced by short codes: the initial state is '0', the
conventional halting names get one letter each and every other state is
numbered in name order. Decoding therefore restores the structure of a
program but not necessarily its state names.
"""

from __future__ import annotations

import logging

from tur.config import DEFAULT_BLANK_SYMBOL, INPUT_BLANK_SYMBOL
from tur.types import Direction, Mode, Program, Transition, TuringMachineError

logger = logging.getLogger(__name__)

SEPARATORS = (":", ",", "|")

HALTING_CODES = {
    "halt": "h",
    "accept": "a",
    "stop": "s",
    "reject": "r",
}
HALTING_NAMES = {code: name for name, code in HALTING_CODES.items()}

INITIAL_CODE = "0"
INITIAL_NAME = "start"


class EncodingError(TuringMachineError):
    """A program that cannot be encoded, or text that cannot be decoded."""


# ============================================================================
# Encoding
# ============================================================================

def state_codes(program: Program) -> dict[str, str]:
    """Map every state of ``program`` to its short code."""
    codes = {program.initial_state: INITIAL_CODE}
    counter = 1
    for state in program.states:
        if state in codes:
            continue
        if state in HALTING_CODES:
            codes[state] = HALTING_CODES[state]
        else:
            codes[state] = str(counter)
            counter += 1
    return codes


def _check_text(value: str, what: str) -> None:
    for separator in SEPARATORS:
        if separator in value:
            raise EncodingError(f"{what} {value!r} contains reserved character {separator!r}")


def encode(program: Program) -> str:
    """Encode a single-tape program as ``name:tape:rules``."""
    if len(program.tapes) != 1:
        raise EncodingError(
            f"Only single-tape programs can be encoded; {program.name!r} has "
            f"{len(program.tapes)} tapes"
        )
    _check_text(program.name, "Program name")

    def symbol(value: str) -> str:
        _check_text(value, "Symbol")
        return value

    # Cells are written literally; the format does not carry the blank
    tape = ",".join(symbol(cell) for cell in program.tapes[0])

    codes = state_codes(program)
    rules = []
    for state in sorted(program.rules):
        for transition in program.rules[state]:
            rules.append(",".join((
                codes[state],
                symbol(transition.read[0]),
                symbol(transition.write[0]),
                transition.directions[0].value,
                codes[transition.next_state],
            )))

    encoded = f"{program.name}:{tape}:{'|'.join(rules)}"
    logger.debug("Encoded %r as %d characters", program.name, len(encoded))
    return encoded


# ============================================================================
# Decoding
# ============================================================================

def state_name(code: str) -> str:
    if code == INITIAL_CODE:
        return INITIAL_NAME
    if code in HALTING_NAMES:
        return HALTING_NAMES[code]
    if code.isdigit():
        return f"q{code}"
    return code


def _symbol(value: str, blank: str, where: str) -> str:
    if len(value) != 1:
        raise EncodingError(f"Invalid symbol {value!r} in {where}")
    return blank if value == INPUT_BLANK_SYMBOL else value


def decode(text: str, blank: str = DEFAULT_BLANK_SYMBOL) -> Program:
    """Rebuild a Program from ``name:tape:rules`` text.

    '_' on the tape becomes ``blank``; '_' in rules stays the wildcard.
    Heads start at 0 and the mode is normal.
    """
    if len(blank) != 1:
        raise EncodingError(f"Blank must be a single character, got {blank!r}")

    parts = text.split(":")
    if len(parts) != 3:
        raise EncodingError(
            f"Invalid encoding: expected 3 sections separated by ':', found {len(parts)}"
        )
    name, tape_section, rules_section = parts

    tape = ""
    if tape_section:
        tape = "".join(_symbol(cell, blank, "tape") for cell in tape_section.split(","))

    quintuples = []
    if rules_section:
        for index, rule in enumerate(rules_section.split("|")):
            fields = rule.split(",")
            if len(fields) != 5:
                raise EncodingError(
                    f"Rule {index} must have 5 fields, found {len(fields)}: {rule!r}"
                )
            quintuples.append(fields)

    codes = {INITIAL_CODE}
    for fields in quintuples:
        codes.update((fields[0], fields[4]))
    names: dict[str, str] = {}
    for code in sorted(codes):
        state = state_name(code)
        if state in names.values():
            raise EncodingError(f"State code {code!r} decodes to duplicate name {state!r}")
        names[code] = state

    rules: dict[str, list[Transition]] = {}
    for index, (state, read, write, direction, target) in enumerate(quintuples):
        where = f"rule {index}"
        try:
            move = Direction(direction)
        except ValueError:
            raise EncodingError(f"Invalid direction {direction!r} in {where}") from None
        # Keep the wildcard in rules; the machine resolves it
        transition = Transition(
            read=(_symbol(read, INPUT_BLANK_SYMBOL, where),),
            write=(_symbol(write, INPUT_BLANK_SYMBOL, where),),
            directions=(move,),
            next_state=names[target],
        )
        rules.setdefault(names[state], []).append(transition)

    # Rules are encoded in name order; the initial state leads again
    if INITIAL_NAME in rules:
        rules = {INITIAL_NAME: rules.pop(INITIAL_NAME), **rules}

    return Program(
        name=name,
        initial_state=INITIAL_NAME,
        tapes=(tape,),
        heads=(0,),
        rules=rules,
        blank=blank,
        mode=Mode.NORMAL,
    )
