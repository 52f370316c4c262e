# strangify/watch/detector.py

"""Content-based change detection."""

import hashlib
import logging
import time
from typing import Callable, Dict, FrozenSet, Iterable, Optional

from strangify.core.definitions import STDIN_SOURCE
from strangify.core.domain import ChangeEvent, TextUnit

logger = logging.getLogger(__name__)


class ContentChangeDetector:
    """Emits change events only for real content changes.

    Remembers the digest of the last snapshot delivered for each unit, so
    metadata-only touches and repeated notifications for the same content
    produce nothing. Also assigns the per-source sequence numbers.

    Units of a stream source (stdin lines) are identified by byte offset and
    never recur, so no digest is kept for them.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        stream_sources: Iterable[str] = (STDIN_SOURCE,),
    ) -> None:
        self._clock = clock
        self._stream_sources: FrozenSet[str] = frozenset(stream_sources)
        self._digests: Dict[str, str] = {}
        self._seq: Dict[str, int] = {}

    def observe(
        self, source: str, identity: str, content: bytes
    ) -> Optional[ChangeEvent]:
        """Compares ``content`` with the last delivered snapshot.

        Args:
            source: Ordering scope of the unit
            identity: Stable unit identity
            content: Current bytes of the unit

        Returns:
            A ChangeEvent if the content differs, otherwise None
        """
        digest = hashlib.sha256(content).hexdigest()

        if self._digests.get(identity) == digest:
            logger.debug(
                "Ignoring notification without content change",
                extra={"identity": identity},
            )
            return None

        if source not in self._stream_sources:
            self._digests[identity] = digest
        seq = self._seq.get(source, 0) + 1
        self._seq[source] = seq

        return ChangeEvent(
            unit=TextUnit(source=source, identity=identity, seq=seq, content=content),
            revision=self._clock(),
            digest=digest,
        )

    def forget(self, identity: str) -> None:
        """Drops the snapshot of a removed unit so a recreated one is delivered."""
        self._digests.pop(identity, None)

    def __len__(self) -> int:
        return len(self._digests)
