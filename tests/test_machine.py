"""
Tur Machine Test Suite

1. Single steps and step counting
2. Wildcard blank matching
3. Tape growth (left and right)
4. Normal vs strict halting
5. run() and the step budget
6. reset() and tape input
7. Multi-tape execution
8. End-to-end: source → execution result
"""

import pytest

from tur.config import MAX_STEPS
from tur.machine import TuringMachine
from tur.parser import parse
from tur.types import (
    CONTINUE,
    Continue,
    Direction,
    Halt,
    InvalidStateError,
    Mode,
    Program,
    Transition,
    UndefinedTransition,
    ValidationError,
)

L, R, S = Direction.LEFT, Direction.RIGHT, Direction.STAY


def t(read, write, direction, next_state):
    return Transition((read,), (write,), (direction,), next_state)


def make_machine(rules, tape="a", head=0, blank=" ", mode=Mode.NORMAL, initial="start"):
    program = Program(
        name="test",
        initial_state=initial,
        tapes=(tape,),
        heads=(head,),
        rules=rules,
        blank=blank,
        mode=mode,
    )
    return TuringMachine(program)


# ============================================================================
# 1. Steps
# ============================================================================

def test_step_continue_advances_count_by_one():
    machine = make_machine({"start": [t("a", "a", R, "start")]}, tape="aaa")
    for expected in range(1, 4):
        assert machine.step() == CONTINUE
        assert machine.step_count == expected


def test_step_halts_when_state_has_no_rules():
    machine = make_machine({"start": [t("a", "b", S, "done")], "done": []})
    assert isinstance(machine.step(), Continue)
    outcome = machine.step()
    assert outcome == Halt()
    assert outcome.ok
    assert machine.step_count == 1


def test_step_halts_on_unknown_state():
    machine = make_machine({"start": [t("a", "b", S, "halt")]})
    machine.step()
    assert machine.step() == Halt()
    assert machine.is_halted


def test_first_matching_transition_wins():
    machine = make_machine({
        "start": [t("a", "x", S, "first"), t("a", "y", S, "second")],
    })
    machine.step()
    assert machine.tapes == [["x"]]
    assert machine.state == "first"


def test_halt_is_latched_until_reset():
    machine = make_machine({"start": [t("b", "b", S, "halt")]})
    first = machine.step()
    assert isinstance(first, Halt)
    assert machine.step() is first
    assert machine.step_count == 0


def test_current_transition_does_not_mutate():
    rule = t("a", "b", R, "halt")
    machine = make_machine({"start": [rule]})
    assert machine.current_transition() == rule
    assert machine.tapes == [["a"]]
    assert machine.step_count == 0


# ============================================================================
# 2. Wildcard blank
# ============================================================================

@pytest.mark.parametrize("blank", [" ", "0", "#"])
def test_wildcard_matches_configured_blank(blank):
    machine = make_machine({"start": [t("_", "x", S, "halt")]}, tape=blank, blank=blank)
    assert machine.step() == CONTINUE
    assert machine.tapes == [["x"]]


def test_wildcard_does_not_match_other_symbols():
    machine = make_machine({"start": [t("_", "x", S, "halt")]}, tape="a")
    assert isinstance(machine.step(), Halt)


def test_wildcard_write_writes_blank():
    machine = make_machine({"start": [t("a", "_", S, "halt")]}, blank="0")
    machine.step()
    assert machine.tapes == [["0"]]


def test_wildcard_matches_grown_cell():
    machine = make_machine({"start": [t("_", "x", S, "halt")]}, tape="", blank="0")
    machine.step()
    assert machine.tapes == [["x"]]


# ============================================================================
# 3. Growth
# ============================================================================

def test_left_at_zero_inserts_blank():
    machine = make_machine({"start": [t("a", "b", L, "halt")]}, tape="ac")
    machine.step()
    assert machine.tapes == [[" ", "b", "c"]]
    assert machine.heads == [0]


def test_right_past_end_appends_blank():
    machine = make_machine({"start": [t("c", "d", R, "halt")]}, tape="ac", head=1)
    machine.step()
    assert machine.tapes == [["a", "d", " "]]
    assert machine.heads == [2]


def test_left_in_middle_moves_head():
    machine = make_machine({"start": [t("c", "c", L, "halt")]}, tape="ac", head=1)
    machine.step()
    assert machine.tapes == [["a", "c"]]
    assert machine.heads == [0]


def test_symbols_reports_blank_off_tape():
    machine = make_machine({"start": []}, tape="")
    assert machine.symbols == (" ",)


# ============================================================================
# 4. Modes
# ============================================================================

def test_normal_mode_no_match_is_clean_halt():
    machine = make_machine({"start": [t("b", "b", S, "halt")]}, mode=Mode.NORMAL)
    assert machine.step() == Halt()


def test_strict_mode_no_match_carries_error():
    machine = make_machine({"start": [t("b", "b", S, "halt")]}, mode=Mode.STRICT)
    outcome = machine.step()
    assert isinstance(outcome, Halt)
    assert not outcome.ok
    assert outcome.error == UndefinedTransition("start", ("a",))
    assert outcome.error.state == "start"
    assert outcome.error.symbols == ("a",)


def test_strict_mode_empty_state_is_clean_halt():
    machine = make_machine(
        {"start": [t("a", "a", S, "done")], "done": []}, mode=Mode.STRICT
    )
    machine.step()
    assert machine.step() == Halt()


# ============================================================================
# 5. run()
# ============================================================================

def test_run_returns_final_halt():
    machine = make_machine(
        {"start": [t("a", "a", R, "start"), t("_", "_", S, "halt")]}, tape="aaa"
    )
    outcome = machine.run()
    assert outcome == Halt()
    assert machine.step_count == 4


def test_run_stops_at_step_budget():
    machine = make_machine({"start": [t("_", "_", R, "start")]}, tape="")
    outcome = machine.run()
    assert outcome.ok
    assert outcome.exhausted
    assert machine.step_count == MAX_STEPS
    assert not machine.is_halted


def test_run_to_completion_trace():
    machine = make_machine(
        {"start": [t("a", "b", R, "start"), t("_", "_", S, "halt")]}, tape="aa"
    )
    trace = machine.run_to_completion()
    assert [s.step for s in trace] == [0, 1, 2]
    assert trace[0].tape == "aa"
    assert trace[0].symbols_read == ("a",)
    assert trace[2].transition == t("_", "_", S, "halt")
    assert machine.is_halted


# ============================================================================
# 6. reset() and inputs
# ============================================================================

def test_reset_restores_initial_configuration():
    machine = make_machine(
        {"start": [t("a", "b", L, "start"), t("_", "x", R, "next")], "next": []}, tape="aa"
    )
    initial = (machine.tapes, machine.heads, machine.state, machine.step_count)
    machine.run()
    assert machine.step_count > 0
    machine.reset()
    assert (machine.tapes, machine.heads, machine.state, machine.step_count) == initial
    assert not machine.is_halted


def test_set_tape_content_rewrites_sentinel():
    machine = make_machine({"start": []}, blank="0")
    machine.set_tape_content(0, "1_1")
    assert machine.tapes_as_strings() == ["101"]


def test_set_tape_content_index_out_of_range():
    machine = make_machine({"start": []})
    with pytest.raises(ValidationError):
        machine.set_tape_content(1, "a")


def test_set_tapes_content_too_many_inputs():
    machine = make_machine({"start": []})
    with pytest.raises(ValidationError):
        machine.set_tapes_content(["a", "b"])


def test_mismatched_program_is_rejected():
    program = Program(
        name="bad", initial_state="start", tapes=("a",), heads=(0, 0), rules={"start": []}
    )
    with pytest.raises(InvalidStateError):
        TuringMachine(program)


def test_program_is_shared_not_mutated():
    machine = make_machine({"start": [t("a", "b", R, "halt")]})
    other = TuringMachine(machine.program)
    machine.step()
    assert machine.program.tapes == ("a",)
    assert other.tapes == [["a"]]


def test_program_is_hashable():
    rules = {"start": [t("a", "b", R, "halt")]}
    first = make_machine(rules).program
    second = make_machine(dict(rules)).program
    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1


# ============================================================================
# 7. Multi-tape
# ============================================================================

def test_multi_tape_moves_heads_independently():
    rule = Transition(("a", "_"), ("x", "y"), (R, L), "halt")
    program = Program(
        name="two", initial_state="start", tapes=("a", ""), heads=(0, 0),
        rules={"start": [rule]},
    )
    machine = TuringMachine(program)
    assert machine.step() == CONTINUE
    assert machine.tapes == [["x", " "], [" ", "y"]]
    assert machine.heads == [1, 0]
    assert machine.symbols == (" ", " ")


def test_arity_mismatch_never_matches():
    rule = Transition(("a",), ("a",), (S,), "halt")
    program = Program(
        name="two", initial_state="start", tapes=("a", "a"), heads=(0, 0),
        rules={"start": [rule]},
    )
    assert isinstance(TuringMachine(program).step(), Halt)


# ============================================================================
# 8. End-to-end
# ============================================================================

def test_end_to_end_single_step():
    program = parse("name: T\ntape: a\nrules:\n  start:\n    a -> b, R, halt\n")
    assert program.initial_state == "start"
    machine = TuringMachine(program)
    assert machine.step() == CONTINUE
    assert machine.state == "halt"
    assert machine.step_count == 1
    assert machine.tapes == [["b", program.blank]]
    assert machine.is_halted


def test_end_to_end_strict_source():
    source = (
        "name: Strict\n"
        "mode: strict\n"
        "tape: a, b\n"
        "rules:\n"
        "  start:\n"
        "    a -> a, R, start\n"
        "    b -> b, R, start\n"
        "  unused:\n"
    )
    with pytest.raises(ValidationError):
        parse(source)

    program = parse(source.replace("  unused:\n", ""))
    machine = TuringMachine(program)
    outcome = machine.run()
    assert outcome.error == UndefinedTransition("start", (" ",))
    assert machine.step_count == 2
