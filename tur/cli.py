#!/usr/bin/env python3
"""
Tur: Turing machine programs from the command line

Usage:
    tur run <program.tur>              Run a program and print its tapes
    tur run --example NAME             Run a built-in example
    tur check <program.tur>            Parse and validate a program
    tur encode <program.tur>           Print the canonical one-line encoding
    tur decode <text>                  Turn an encoding back into source
    tur list                           List the built-in examples
    tur show <name|index>              Print an example's source
    tur graph <program.tur>            Print the state graph
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from typing import Optional

from tur.analyzer import UndefinedNextStates, check_undefined_next_states, state_graph
from tur.config import (
    INPUT_BLANK_SYMBOL,
    LOG_FORMAT,
    LOGGING_LEVEL,
    LOGGING_LEVEL_VERBOSE,
)
from tur.encoder import decode, encode
from tur.loader import ProgramLoader
from tur.machine import TuringMachine
from tur.programs import default_catalog
from tur.types import Halt, Mode, Program, TuringMachineError, ValidationError


# ============================================================================
# Formatting helpers
# ============================================================================

class C:
    """ANSI colors."""
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    RESET = "\033[0m"

    @staticmethod
    def off():
        C.BOLD = C.DIM = C.RED = C.GREEN = C.YELLOW = C.CYAN = C.RESET = ""


def header(text: str) -> str:
    return f"\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}\n{C.BOLD}  {text}{C.RESET}\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}"


def ok(text: str) -> str:
    return f"  {C.GREEN}✓{C.RESET} {text}"


def warn(text: str) -> str:
    return f"  {C.YELLOW}⚠{C.RESET} {text}"


def fail(text: str) -> str:
    return f"  {C.RED}✗{C.RESET} {text}"


def dim(text: str) -> str:
    return f"{C.DIM}{text}{C.RESET}"


def render_tape(cells: str, head: int) -> list[str]:
    """Two lines: the cells and a caret under the head."""
    return [
        "|" + "|".join(cells) + "|",
        " " + "  " * head + f"{C.YELLOW}^{C.RESET}",
    ]


RESERVED = set(",[]:'\"#_") | {" ", "\t"}


def quote(symbol: str) -> str:
    return f"'{symbol}'" if symbol in RESERVED else symbol


def to_source(program: Program) -> str:
    """Render a Program back into Tur source text."""
    def cell(symbol: str) -> str:
        return INPUT_BLANK_SYMBOL if symbol == program.blank else quote(symbol)

    def action_symbol(symbol: str) -> str:
        return symbol if symbol == INPUT_BLANK_SYMBOL else quote(symbol)

    lines = [f"name: {program.name}"]
    if program.blank != " ":
        lines.append(f"blank: {quote(program.blank)}")
    if program.mode != Mode.NORMAL:
        lines.append(f"mode: {program.mode.value}")

    if program.is_single_tape:
        lines.append("tape: " + ", ".join(cell(s) for s in program.tapes[0]))
        if program.heads[0]:
            lines.append(f"head: {program.heads[0]}")
    else:
        lines.append("tapes:")
        for tape in program.tapes:
            lines.append("  [" + ", ".join(cell(s) for s in tape) + "]")
        if any(program.heads):
            lines.append("heads: [" + ", ".join(str(h) for h in program.heads) + "]")

    # The first state block is the initial state
    order = [program.initial_state] if program.initial_state in program.rules else []
    order += [state for state in program.rules if state != program.initial_state]

    lines.append("rules:")
    for state in order:
        lines.append(f"  {state}:")
        for t in program.rules[state]:
            read = [action_symbol(s) for s in t.read]
            write = [action_symbol(s) for s in t.write]
            dirs = [d.value for d in t.directions]
            if program.is_single_tape:
                lines.append(f"    {read[0]} -> {write[0]}, {dirs[0]}, {t.next_state}")
            else:
                lines.append(
                    f"    [{', '.join(read)}] -> [{', '.join(write)}], "
                    f"[{', '.join(dirs)}], {t.next_state}"
                )
    return "\n".join(lines) + "\n"


# ============================================================================
# Program selection
# ============================================================================

def catalog_program(key: str) -> tuple[int, Program]:
    """Look up a built-in example by index or exact name."""
    catalog = default_catalog()
    index = int(key) if key.isascii() and key.isdigit() else catalog.index_of(key)
    return index, catalog.get(index)


def resolve_program(args) -> Program:
    if getattr(args, "example", None):
        return catalog_program(args.example)[1]
    if not args.program:
        raise ValidationError("Give a program file or --example NAME")
    return ProgramLoader.load_program(args.program)


# ============================================================================
# Commands
# ============================================================================

def cmd_run(args):
    """Run a program to completion."""
    program = resolve_program(args)
    machine = TuringMachine(program)

    inputs = list(args.input or [])
    if inputs == ["-"]:
        inputs = [line.rstrip("\n") for line in sys.stdin]
    if inputs:
        machine.set_tapes_content(inputs)

    print(header(f"RUN: {program.name}"))

    if args.debug:
        for snapshot in machine.run_to_completion():
            fired = snapshot.transition.label if snapshot.transition else "-"
            print(dim(
                f"    [{snapshot.step:4d}] {snapshot.state:12s} "
                f"read={list(snapshot.symbols_read)} {fired} -> "
                f"{snapshot.transition.next_state if snapshot.transition else '-'}"
            ))
        outcome = machine.step() if machine.is_halted else Halt(exhausted=True)
    else:
        outcome = machine.run()

    print()
    for index, (cells, head) in enumerate(zip(machine.tapes_as_strings(), machine.heads)):
        print(f"  {C.BOLD}Tape {index}:{C.RESET}")
        for line in render_tape(cells, head):
            print(f"    {line}")
    print(f"\n  State: {C.CYAN}{machine.state}{C.RESET}")
    print(f"  Steps: {machine.step_count}")

    if not outcome.ok:
        print(fail(str(outcome.error)))
        return 1
    if outcome.exhausted:
        print(warn(f"Stopped after {machine.step_count} steps without halting"))
    else:
        print(ok("Halted"))
    return 0


def cmd_check(args):
    """Parse and validate a program."""
    program = ProgramLoader.load_program(args.program)
    print(ok(f"{program.name}: valid"))
    print(dim(
        f"    {program.tape_count} tape(s), {len(program.states)} states, "
        f"{program.transition_count} transitions, start={program.initial_state}"
    ))
    try:
        check_undefined_next_states(program)
    except UndefinedNextStates as exc:
        print(warn(str(exc)))
    return 0


def cmd_encode(args):
    print(encode(resolve_program(args)))
    return 0


def cmd_decode(args):
    program = decode(args.text, blank=args.blank)
    print(to_source(program), end="")
    return 0


def cmd_list(args):
    catalog = default_catalog()
    print(header(f"EXAMPLES ({len(catalog)})"))
    for index in range(len(catalog)):
        info = catalog.info(index)
        print(
            f"  [{index}] {C.BOLD}{info.name}{C.RESET}  "
            + dim(f"{info.tape_count} tape(s), {info.state_count} states, "
                  f"{info.transition_count} transitions")
        )
    return 0


def cmd_show(args):
    index, _ = catalog_program(args.key)
    print(default_catalog().text(index), end="")
    return 0


def cmd_graph(args):
    """Print the state graph of a program."""
    program = resolve_program(args)
    graph = state_graph(program)

    print(header(f"GRAPH: {program.name}"))
    print(f"  {graph.number_of_nodes()} states, {graph.number_of_edges()} edges\n")
    for source, target, data in sorted(graph.edges(data=True)):
        labels = "; ".join(data["labels"])
        print(f"    {source} {C.CYAN}→{C.RESET} {target}  {dim(labels)}")

    terminal = sorted(node for node in graph.nodes if graph.out_degree(node) == 0)
    if terminal:
        print(f"\n  Terminal: {', '.join(terminal)}")
    return 0


# ============================================================================
# CLI setup
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tur",
        description="Tur: parse, validate and run Turing machine programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
        examples:
          tur run examples/counter.tur -i 1011
          tur run --example "Busy Beaver 3"
          tur encode examples/counter.tur
        """),
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log parsing and every step")

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("run", help="Run a program")
    p.add_argument("program", nargs="?", help="Path to .tur program file")
    p.add_argument("-e", "--example", help="Built-in example name or index")
    p.add_argument("-i", "--input", action="append",
                   help="Tape content, once per tape ('-' reads one tape per stdin line)")
    p.add_argument("-d", "--debug", action="store_true", help="Print every step")

    p = sub.add_parser("check", help="Parse and validate a program")
    p.add_argument("program", help="Path to .tur program file")

    p = sub.add_parser("encode", help="Print the canonical encoding")
    p.add_argument("program", nargs="?", help="Path to .tur program file")
    p.add_argument("-e", "--example", help="Built-in example name or index")

    p = sub.add_parser("decode", help="Turn an encoding back into source")
    p.add_argument("text", help="Encoded program (name:tape:rules)")
    p.add_argument("--blank", default=" ", help="Blank symbol of the decoded program")

    sub.add_parser("list", help="List built-in examples")

    p = sub.add_parser("show", help="Print a built-in example's source")
    p.add_argument("key", help="Example name or index")

    p = sub.add_parser("graph", help="Print the state graph")
    p.add_argument("program", nargs="?", help="Path to .tur program file")
    p.add_argument("-e", "--example", help="Built-in example name or index")

    return parser


def main(argv: Optional[list[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.no_color:
        C.off()

    logging.basicConfig(
        level=LOGGING_LEVEL_VERBOSE if args.verbose else LOGGING_LEVEL,
        format=LOG_FORMAT,
    )

    if not args.command:
        parser.print_help()
        return

    # Dispatch
    commands = {
        "run": cmd_run,
        "check": cmd_check,
        "encode": cmd_encode,
        "decode": cmd_decode,
        "list": cmd_list,
        "show": cmd_show,
        "graph": cmd_graph,
    }

    handler = commands[args.command]
    try:
        status = handler(args)
    except TuringMachineError as e:
        print(fail(f"Error: {e}"))
        sys.exit(1)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
