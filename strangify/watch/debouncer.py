# strangify/watch/debouncer.py

"""Quiescence-based debouncing of change events."""

import itertools
import logging
import time
from typing import Callable, Dict, List, Optional

from strangify.core.domain import ChangeEvent, PendingRequest

logger = logging.getLogger(__name__)


class Debouncer:
    """Single-writer table of pending requests, one per unit.

    Each change overwrites the unit's pending snapshot and pushes its
    deadline back by the quiescence window. A unit is handed out once its
    deadline passes without a further change. Superseded snapshots are
    dropped, so memory is bounded by the number of distinct live units.

    Not thread-safe: only the watch loop thread touches it.
    """

    def __init__(
        self, quiescence: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.quiescence = max(0.0, quiescence)
        self._clock = clock
        self._pending: Dict[str, PendingRequest] = {}
        self._arrivals = itertools.count()

    def submit(self, event: ChangeEvent) -> PendingRequest:
        """Records ``event`` as the unit's latest snapshot and re-arms its deadline."""
        deadline = self._clock() + self.quiescence
        request = self._pending.get(event.identity)

        if request is None:
            request = PendingRequest(
                event=event, deadline=deadline, order=next(self._arrivals)
            )
            self._pending[event.identity] = request
        else:
            request.event = event
            request.deadline = deadline
            request.updates += 1
            logger.debug(
                "Coalesced change into pending request",
                extra={"identity": event.identity, "updates": request.updates},
            )

        return request

    def due(self, now: Optional[float] = None) -> List[PendingRequest]:
        """Removes and returns every request whose deadline has passed.

        Requests come back in unit arrival order.
        """
        if now is None:
            now = self._clock()
        ready = [r for r in self._pending.values() if r.deadline <= now]
        for request in ready:
            del self._pending[request.identity]
        return sorted(ready, key=lambda r: r.order)

    def flush(self) -> List[PendingRequest]:
        """Removes and returns all requests immediately, in unit arrival order."""
        ready = sorted(self._pending.values(), key=lambda r: r.order)
        self._pending.clear()
        return ready

    def discard(self, identity: str) -> None:
        self._pending.pop(identity, None)

    def next_deadline(self) -> Optional[float]:
        if not self._pending:
            return None
        return min(r.deadline for r in self._pending.values())

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, identity: object) -> bool:
        return identity in self._pending
