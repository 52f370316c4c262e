# strangify/core/definitions.py

"""Constants and enumerations shared across the strangify system."""

from enum import Enum


class StrangifyMode(str, Enum):
    """Word transforms available to a rule set."""

    MIRROR = "mirror"
    ROT13 = "rot13"
    SCRAMBLE = "scramble"
    HOMOGLYPH = "homoglyph"


# Modes whose word transform is its own inverse
SELF_INVERSE_MODES = frozenset(
    {StrangifyMode.MIRROR, StrangifyMode.ROT13, StrangifyMode.HOMOGLYPH}
)


class TokenKind(str, Enum):
    """Token classes produced by the tokenizer."""

    WORD = "word"
    SPACE = "space"
    PUNCT = "punct"


class LoopState(str, Enum):
    """Lifecycle states of the watch loop."""

    STARTING = "starting"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


# Allowed state transitions; STOPPED is terminal
LOOP_TRANSITIONS = {
    LoopState.STARTING: frozenset({LoopState.RUNNING, LoopState.STOPPED}),
    LoopState.RUNNING: frozenset({LoopState.DRAINING}),
    LoopState.DRAINING: frozenset({LoopState.STOPPED}),
    LoopState.STOPPED: frozenset(),
}

STDIN_SOURCE = "<stdin>"

TEMP_PREFIX = ".strangify-"

# Process exit codes
EXIT_OK = 0
EXIT_SOURCE_UNAVAILABLE = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_UNIT_FAILURES = 3
