"""
Tur configuration constants.

Shared by the parser, analyzer, machine and encoder. MAX_STEPS bounds
a single TuringMachine.run() call and is not adjustable at runtime.
"""

import logging

# The blank symbol used when a program does not declare one
DEFAULT_BLANK_SYMBOL = " "
# Reserved DSL character meaning "whatever the blank symbol is"
INPUT_BLANK_SYMBOL = "_"
# Implicit transition target that never needs a rules entry
HALT_STATE = "halt"

MAX_PROGRAM_SIZE = 65536  # 64 KiB of source text
MAX_STEPS = 10_000

LOGGING_LEVEL = logging.WARNING
LOGGING_LEVEL_VERBOSE = logging.DEBUG
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
