# strangify/core/domain.py

"""Domain models for units, change events and transformation results."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from strangify.core.definitions import LoopState


@dataclass(frozen=True)
class TextUnit:
    """The atomic piece of text transformed as one job.

    Attributes:
        source: Stream or file the unit belongs to (ordering scope)
        identity: Stable identity (file path, or stream offset for lines)
        seq: Monotonic sequence number within the source, assigned on arrival
        content: Raw bytes of the unit
    """

    source: str
    identity: str
    seq: int
    content: bytes


@dataclass(frozen=True)
class ChangeEvent:
    """A detected content change for one unit.

    Attributes:
        unit: Snapshot of the unit at the time of the change
        revision: Monotonic timestamp of the observation
        digest: SHA-256 hex digest of the snapshot
    """

    unit: TextUnit
    revision: float
    digest: str

    @property
    def identity(self) -> str:
        return self.unit.identity


@dataclass
class PendingRequest:
    """Debouncer entry: the latest snapshot of a unit and its deadline."""

    event: ChangeEvent
    deadline: float
    order: int
    updates: int = 1

    @property
    def identity(self) -> str:
        return self.event.identity


@dataclass
class StrangifyResult:
    """Result of transforming one unit.

    Attributes:
        unit: The unit that was processed
        text: Transformed text, or None when the unit failed
        data: Transformed text encoded for output, or None when the unit failed
        metadata: Additional processing information (``error`` on failure)
    """

    unit: TextUnit
    text: Optional[str] = None
    data: Optional[bytes] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return "error" not in self.metadata


@dataclass
class RunReport:
    """Summary returned by the watch loop when it stops."""

    dispatched: int = 0
    emitted: int = 0
    failed: int = 0
    state: LoopState = LoopState.STARTING
