"""
Tur DSL Parser

Turns program source text into a validated Program.

Phases:
1. Lexical Analysis → Token stream (line based, sections at column 1)
2. Parsing → Syntax tree (recursive descent, no semantic checks)
3. Assembly → Program (section uniqueness, defaults, blank rewrite, arity)
4. Analysis → tur.analyzer gate; failures get a source span attached

Example program:
    name: Flip bits
    tape: 1, 0, 1, 1
    rules:
      start:
        1 -> 0, R, start
        0 -> 1, R, start
        _ -> _, S, halt

Every ParseError carries the Span of the offending text so editors and
the CLI can point at it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from tur.analyzer import (
    AnalysisError,
    InvalidHead,
    InvalidStartState,
    InvalidTapeSymbols,
    UnreachableStates,
    analyze,
)
from tur.config import DEFAULT_BLANK_SYMBOL, INPUT_BLANK_SYMBOL, MAX_PROGRAM_SIZE
from tur.types import (
    Direction,
    Mode,
    ParseError,
    Program,
    Span,
    Transition,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Token Types
# ============================================================================

class TokenType(Enum):
    SECTION = auto()      # name: blank: mode: tape: tapes: head: heads: rules:
    TEXT = auto()         # free text after name:
    WORD = auto()         # state names, bare symbols, digits
    CHAR = auto()         # any other single unreserved character
    QUOTED = auto()       # 'x'
    ARROW = auto()        # ->
    COMMA = auto()
    COLON = auto()
    LBRACKET = auto()     # [
    RBRACKET = auto()     # ]
    NEWLINE = auto()
    EOF = auto()


@dataclass
class Token:
    type: TokenType
    value: str
    line: int
    col: int        # 1-based
    offset: int     # character offset into the source
    length: int = 1

    @property
    def span(self) -> Span:
        return Span(self.offset, self.offset + self.length, self.line, self.col)

    def __repr__(self) -> str:
        return f"<{self.type.name}:{self.value!r}>"


# ============================================================================
# Lexer
# ============================================================================

SECTION_PATTERN = re.compile(r"(name|blank|mode|tapes|tape|heads|head|rules)[ \t]*:")
WORD_PATTERN = re.compile(r"\w+")
INDEX_PATTERN = re.compile(r"[0-9]+")

PUNCTUATION = {
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}

DIRECTIONS = {
    "L": Direction.LEFT,
    "<": Direction.LEFT,
    "R": Direction.RIGHT,
    ">": Direction.RIGHT,
    "S": Direction.STAY,
    "-": Direction.STAY,
}


def tokenize(source: str) -> list[Token]:
    """Tokenize Tur source into a token stream.

    Section headers are only recognized at the start of a line, so an
    indented state may be called ``tape`` or ``rules``.
    """
    tokens: list[Token] = []
    lines = source.split("\n")
    offset = 0

    for line_num, text in enumerate(lines, 1):
        col = 0

        header = SECTION_PATTERN.match(text)
        if header:
            keyword = header.group(1)
            tokens.append(Token(TokenType.SECTION, keyword, line_num, 1, offset, header.end()))
            col = header.end()

            # The name runs to the end of the line
            if keyword == "name":
                rest = text[col:]
                comment_idx = rest.find("#")
                if comment_idx >= 0:
                    rest = rest[:comment_idx]
                value = rest.strip()
                if value:
                    start = col + rest.index(value)
                    tokens.append(Token(
                        TokenType.TEXT, value, line_num, start + 1, offset + start, len(value)
                    ))
                col = len(text)

        while col < len(text):
            ch = text[col]

            if ch in " \t\r":
                col += 1
                continue

            if ch == "#":
                break

            # Quoted symbol: 'x', including ''' for a single quote
            if ch == "'":
                if col + 2 < len(text) and text[col + 2] == "'":
                    tokens.append(Token(
                        TokenType.QUOTED, text[col + 1], line_num, col + 1, offset + col, 3
                    ))
                    col += 3
                    continue
                raise ParseError(
                    "Quoted symbols must be exactly one character",
                    Span(offset + col, offset + col + 1, line_num, col + 1),
                )

            if text.startswith("->", col):
                tokens.append(Token(TokenType.ARROW, "->", line_num, col + 1, offset + col, 2))
                col += 2
                continue

            if ch in PUNCTUATION:
                tokens.append(Token(PUNCTUATION[ch], ch, line_num, col + 1, offset + col))
                col += 1
                continue

            if ch == '"':
                raise ParseError(
                    "Use single quotes to quote a symbol",
                    Span(offset + col, offset + col + 1, line_num, col + 1),
                )

            match = WORD_PATTERN.match(text, col)
            if match:
                tokens.append(Token(
                    TokenType.WORD, match.group(), line_num, col + 1, offset + col, match.end() - col
                ))
                col = match.end()
                continue

            tokens.append(Token(TokenType.CHAR, ch, line_num, col + 1, offset + col))
            col += 1

        if line_num < len(lines):
            tokens.append(Token(TokenType.NEWLINE, "\n", line_num, len(text) + 1, offset + len(text)))
        offset += len(text) + 1

    tokens.append(Token(
        TokenType.EOF, "", len(lines), len(lines[-1]) + 1, len(source), 0
    ))
    return tokens


def _describe(tok: Token) -> str:
    if tok.type == TokenType.NEWLINE:
        return "end of line"
    if tok.type == TokenType.EOF:
        return "end of input"
    return repr(tok.value)


# ============================================================================
# Syntax Tree
# ============================================================================

class ASTNode:
    """Base class for all syntax tree nodes."""
    pass


@dataclass
class SectionNode(ASTNode):
    keyword: str
    span: Span  # the section header


@dataclass
class NameNode(SectionNode):
    value: str


@dataclass
class BlankNode(SectionNode):
    symbol: str


@dataclass
class ModeNode(SectionNode):
    mode: Mode


@dataclass
class TapeNode(SectionNode):
    tapes: list[list[str]]
    blank_indices: list[list[int]]  # positions of '_' per tape


@dataclass
class HeadNode(SectionNode):
    heads: list[int]


@dataclass
class ActionNode(ASTNode):
    read: list[str]
    write: Optional[list[str]]  # None when omitted
    directions: list[Direction]
    next_state: str
    span: Span


@dataclass
class StateNode(ASTNode):
    name: str
    span: Span
    actions: list[ActionNode] = field(default_factory=list)


@dataclass
class RulesNode(SectionNode):
    states: list[StateNode]


@dataclass
class ProgramNode(ASTNode):
    """A complete Tur source file: its sections in source order."""
    sections: list[SectionNode]


# ============================================================================
# Parser
# ============================================================================

class Parser:
    """Parses a Tur token stream into a syntax tree."""

    def __init__(self, tokens: list[Token]):
        self._tokens = tokens
        self._pos = 0

    def _peek(self, ahead: int = 0) -> Token:
        return self._tokens[min(self._pos + ahead, len(self._tokens) - 1)]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.type != TokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, ttype: TokenType, what: str) -> Token:
        tok = self._peek()
        if tok.type != ttype:
            raise ParseError(f"Expected {what}, found {_describe(tok)}", tok.span)
        return self._advance()

    def _at(self, ttype: TokenType) -> bool:
        return self._peek().type == ttype

    def _at_line_end(self) -> bool:
        return self._peek().type in (TokenType.NEWLINE, TokenType.EOF)

    def _end_line(self) -> None:
        if not self._at_line_end():
            tok = self._peek()
            raise ParseError(f"Unexpected {_describe(tok)}", tok.span)
        self._advance()

    def _skip_newlines(self) -> None:
        while self._at(TokenType.NEWLINE):
            self._advance()

    def parse(self) -> ProgramNode:
        """Parse a complete Tur program."""
        sections: list[SectionNode] = []

        self._skip_newlines()
        while not self._at(TokenType.EOF):
            tok = self._peek()
            if tok.type != TokenType.SECTION:
                raise ParseError(f"Expected a section header, found {_describe(tok)}", tok.span)
            sections.append(self._parse_section())
            self._skip_newlines()

        return ProgramNode(sections=sections)

    def _parse_section(self) -> SectionNode:
        header = self._advance()
        handlers = {
            "name": self._parse_name,
            "blank": self._parse_blank,
            "mode": self._parse_mode,
            "tape": self._parse_tape,
            "tapes": self._parse_tapes,
            "head": self._parse_head,
            "heads": self._parse_heads,
            "rules": self._parse_rules,
        }
        return handlers[header.value](header)

    # -- header sections --

    def _parse_name(self, header: Token) -> NameNode:
        if not self._at(TokenType.TEXT):
            raise ParseError("Expected a program name", header.span)
        value = self._advance().value
        self._end_line()
        return NameNode(header.value, header.span, value)

    def _parse_blank(self, header: Token) -> BlankNode:
        symbol = self._parse_symbol()
        self._end_line()
        return BlankNode(header.value, header.span, symbol)

    def _parse_mode(self, header: Token) -> ModeNode:
        tok = self._expect(TokenType.WORD, "'normal' or 'strict'")
        try:
            mode = Mode(tok.value.lower())
        except ValueError:
            raise ParseError(f"Unsupported mode: {tok.value}", tok.span) from None
        self._end_line()
        return ModeNode(header.value, header.span, mode)

    # -- tapes --

    def _parse_tape_symbols(self, opening: Optional[Token] = None) -> tuple[list[str], list[int]]:
        """Collect tape symbols until end of line, or until ']' after ``opening``.

        A bare run such as ``1011`` contributes one symbol per character;
        commas between symbols are optional.
        """
        symbols: list[str] = []
        blanks: list[int] = []

        while True:
            tok = self._peek()
            if opening is not None and tok.type == TokenType.RBRACKET:
                self._advance()
                break
            if tok.type in (TokenType.NEWLINE, TokenType.EOF):
                if opening is not None:
                    raise ParseError("Unclosed '[' in tape list", opening.span)
                break

            self._advance()
            if tok.type == TokenType.COMMA:
                continue
            if tok.type == TokenType.WORD:
                chars = list(tok.value)
            elif tok.type in (TokenType.QUOTED, TokenType.CHAR):
                chars = [tok.value]
            else:
                raise ParseError(f"Unexpected {_describe(tok)} in tape", tok.span)

            for ch in chars:
                if ch == INPUT_BLANK_SYMBOL:
                    blanks.append(len(symbols))
                symbols.append(ch)

        return symbols, blanks

    def _parse_tape(self, header: Token) -> TapeNode:
        symbols, blanks = self._parse_tape_symbols()
        self._end_line()
        return TapeNode(header.value, header.span, [symbols], [blanks])

    def _parse_tapes(self, header: Token) -> TapeNode:
        tapes: list[list[str]] = []
        blank_indices: list[list[int]] = []

        self._skip_newlines()
        while self._at(TokenType.LBRACKET):
            opening = self._advance()
            symbols, blanks = self._parse_tape_symbols(opening)
            tapes.append(symbols)
            blank_indices.append(blanks)
            if self._at(TokenType.COMMA):
                self._advance()
            self._skip_newlines()

        if not tapes:
            raise ParseError("Expected at least one '[...]' tape list", header.span)
        return TapeNode(header.value, header.span, tapes, blank_indices)

    # -- heads --

    def _parse_index(self) -> int:
        tok = self._peek()
        if tok.type != TokenType.WORD or not INDEX_PATTERN.fullmatch(tok.value):
            raise ParseError(f"Expected a head position, found {_describe(tok)}", tok.span)
        self._advance()
        return int(tok.value)

    def _parse_head(self, header: Token) -> HeadNode:
        position = self._parse_index()
        self._end_line()
        return HeadNode(header.value, header.span, [position])

    def _parse_heads(self, header: Token) -> HeadNode:
        self._expect(TokenType.LBRACKET, "'['")
        heads = [self._parse_index()]
        while self._at(TokenType.COMMA):
            self._advance()
            heads.append(self._parse_index())
        self._expect(TokenType.RBRACKET, "']'")
        self._end_line()
        return HeadNode(header.value, header.span, heads)

    # -- rules --

    def _parse_rules(self, header: Token) -> RulesNode:
        states: list[StateNode] = []
        current: Optional[StateNode] = None

        while True:
            self._skip_newlines()
            tok = self._peek()
            if tok.type in (TokenType.SECTION, TokenType.EOF):
                break

            # State header: `name:` optionally followed by a transition
            if tok.type == TokenType.WORD and self._peek(1).type == TokenType.COLON:
                self._advance()
                self._advance()
                current = StateNode(tok.value, tok.span)
                states.append(current)
                if self._at_line_end():
                    continue

            if current is None:
                raise ParseError("Transition defined before any state", tok.span)
            current.actions.append(self._parse_action())

        return RulesNode(header.value, header.span, states)

    def _fields_left(self) -> int:
        """Comma separated fields from here to the end of the line."""
        fields = 1
        depth = 0
        pos = self._pos
        while self._tokens[pos].type not in (TokenType.NEWLINE, TokenType.EOF):
            ttype = self._tokens[pos].type
            if ttype == TokenType.LBRACKET:
                depth += 1
            elif ttype == TokenType.RBRACKET:
                depth -= 1
            elif ttype == TokenType.COMMA and depth == 0:
                fields += 1
            pos += 1
        return fields

    def _parse_action(self) -> ActionNode:
        """Parse one transition line.

        Accepted shapes (single or bracketed multi-tape):
            read -> write, dir, next
            read -> dir, next
            read, dir, next
        """
        first = self._peek()
        read = self._parse_symbols()
        write: Optional[list[str]] = None

        if self._at(TokenType.ARROW):
            self._advance()
            if self._fields_left() >= 3:
                write = self._parse_symbols()
                self._expect(TokenType.COMMA, "','")
        else:
            self._expect(TokenType.COMMA, "'->' or ','")

        directions = self._parse_directions()
        self._expect(TokenType.COMMA, "','")
        target = self._expect(TokenType.WORD, "a next state")
        self._end_line()

        span = Span(first.offset, target.offset + target.length, first.line, first.col)
        return ActionNode(read, write, directions, target.value, span)

    def _parse_symbol(self) -> str:
        tok = self._peek()
        if tok.type in (TokenType.QUOTED, TokenType.CHAR):
            return self._advance().value
        if tok.type == TokenType.WORD:
            if len(tok.value) != 1:
                raise ParseError(
                    f"Symbols must be a single character, found {tok.value!r}", tok.span
                )
            return self._advance().value
        raise ParseError(f"Expected a symbol, found {_describe(tok)}", tok.span)

    def _parse_direction(self) -> Direction:
        tok = self._peek()
        if tok.type not in (TokenType.WORD, TokenType.CHAR):
            raise ParseError(f"Expected a direction, found {_describe(tok)}", tok.span)
        if tok.value not in DIRECTIONS:
            raise ParseError(f"Unsupported direction: {tok.value}", tok.span)
        self._advance()
        return DIRECTIONS[tok.value]

    def _parse_list(self, item):
        self._expect(TokenType.LBRACKET, "'['")
        items = [item()]
        while self._at(TokenType.COMMA):
            self._advance()
            items.append(item())
        self._expect(TokenType.RBRACKET, "']'")
        return items

    def _parse_symbols(self) -> list[str]:
        if self._at(TokenType.LBRACKET):
            return self._parse_list(self._parse_symbol)
        return [self._parse_symbol()]

    def _parse_directions(self) -> list[Direction]:
        if self._at(TokenType.LBRACKET):
            return self._parse_list(self._parse_direction)
        return [self._parse_direction()]


# ============================================================================
# Assembly
# ============================================================================

# Singular and plural forms share one slot
SECTION_GROUPS = {"tapes": "tape", "heads": "head"}


@dataclass
class SourceMap:
    """Where the parts of an assembled Program came from."""
    sections: dict[str, Span] = field(default_factory=dict)
    states: dict[str, Span] = field(default_factory=dict)

    def locate(self, error: AnalysisError) -> Optional[Span]:
        """Best source span for an analyzer failure."""
        if isinstance(error, InvalidHead):
            return self.sections.get("head") or self.sections.get("tape")
        if isinstance(error, InvalidStartState):
            return self.sections.get("rules")
        if isinstance(error, UnreachableStates) and error.states:
            return self.states.get(error.states[0])
        if isinstance(error, InvalidTapeSymbols):
            return self.sections.get("tape")
        return None


def assemble(tree: ProgramNode) -> tuple[Program, SourceMap]:
    """Turn a syntax tree into a Program.

    Raises ParseError for repeated sections, repeated states and arity
    mismatches; ValidationError for missing sections and head/tape count
    mismatches.
    """
    found: dict[str, SectionNode] = {}
    source_map = SourceMap()

    for section in tree.sections:
        group = SECTION_GROUPS.get(section.keyword, section.keyword)
        previous = found.get(group)
        if previous is not None:
            if previous.keyword == section.keyword:
                raise ParseError(f'Duplicate "{section.keyword}:" declaration', section.span)
            raise ParseError(f"Only one of '{group}' or '{group}s' is allowed", section.span)
        found[group] = section
        source_map.sections[group] = section.span

    rules_node = found.get("rules")
    if rules_node is not None:
        for state in rules_node.states:
            if state.name in source_map.states:
                raise ParseError(f"Duplicate transition rule: {state.name}", state.span)
            source_map.states[state.name] = state.span

    if "name" not in found:
        raise ValidationError("Missing 'name' section")
    if rules_node is None:
        raise ValidationError("Missing 'rules' section")
    if "tape" not in found:
        raise ValidationError("Missing 'tape' or 'tapes' section")
    if not rules_node.states:
        raise ValidationError("The 'rules' section declares no states", rules_node.span)

    blank = found["blank"].symbol if "blank" in found else DEFAULT_BLANK_SYMBOL
    mode = found["mode"].mode if "mode" in found else Mode.NORMAL

    # '_' on a tape means the blank, which may be declared after the tape
    tape_node = found["tape"]
    tapes = []
    for symbols, blank_indices in zip(tape_node.tapes, tape_node.blank_indices):
        cells = list(symbols)
        for index in blank_indices:
            cells[index] = blank
        tapes.append("".join(cells))

    if "head" in found:
        heads = found["head"].heads
        if len(heads) != len(tapes):
            raise ValidationError(
                f"Number of head positions ({len(heads)}) does not match "
                f"number of tapes ({len(tapes)})",
                found["head"].span,
            )
    else:
        heads = [0] * len(tapes)

    rules: dict[str, list[Transition]] = {}
    for state in rules_node.states:
        transitions = []
        for action in state.actions:
            write = action.write if action.write is not None else list(action.read)
            counts = (len(action.read), len(write), len(action.directions))
            if len(set(counts)) != 1:
                raise ParseError(
                    "Inconsistent multi-tape action: read={}, write={}, directions={}".format(*counts),
                    action.span,
                )
            if counts[0] != len(tapes):
                raise ParseError(
                    f"Action uses {counts[0]} tape(s) but the program declares {len(tapes)}",
                    action.span,
                )
            transitions.append(Transition(action.read, write, action.directions, action.next_state))
        rules[state.name] = transitions

    program = Program(
        name=found["name"].value,
        initial_state=rules_node.states[0].name,
        tapes=tapes,
        heads=heads,
        rules=rules,
        blank=blank,
        mode=mode,
    )
    return program, source_map


# ============================================================================
# Public API
# ============================================================================

def parse(source: str) -> Program:
    """
    Parse and validate Tur source text.

    Returns a Program that has passed tur.analyzer.analyze(). Analyzer
    failures are re-raised with the span of the section or state they
    concern.
    """
    size = len(source.encode("utf-8"))
    if size > MAX_PROGRAM_SIZE:
        raise ValidationError(
            f"Program is {size} bytes, exceeding the maximum of {MAX_PROGRAM_SIZE}"
        )

    tokens = tokenize(source)
    tree = Parser(tokens).parse()
    program, source_map = assemble(tree)

    try:
        analyze(program)
    except AnalysisError as exc:
        if exc.span is None:
            exc.span = source_map.locate(exc)
        raise

    logger.debug(
        "Parsed %r: %d tape(s), %d states, %d transitions",
        program.name, program.tape_count, len(program.rules), program.transition_count,
    )
    return program
