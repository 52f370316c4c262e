# strangify/adapters/sinks.py

"""Output sinks for transformed units."""

import logging
import os
import shutil
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Optional

from strangify.core.definitions import TEMP_PREFIX
from strangify.core.domain import TextUnit
from strangify.core.exceptions import OrderingWarning

logger = logging.getLogger(__name__)


class OutputSink(ABC):
    """Destination of transformed units. Implementations are thread-safe."""

    @abstractmethod
    def emit(self, unit: TextUnit, data: bytes) -> None:
        """Writes the transformed content of ``unit``."""
        pass

    @abstractmethod
    def skip(self, unit: TextUnit) -> None:
        """Records that ``unit`` failed and produces no output."""
        pass

    def close(self) -> None:
        """Releases anything still buffered."""
        pass


def _report_ordering(message: str, **context: object) -> None:
    warning = OrderingWarning(message)
    logger.warning(
        str(warning), extra={"diagnostic": type(warning).__name__, **context}
    )


class StreamSink(OutputSink):
    """Writes units to a byte stream in per-source sequence order.

    Units that complete out of order are held back until the gap before
    them closes. At most ``window`` units are held per source: when that
    is exceeded the held units are released past the gap, and a unit that
    shows up after its slot was passed is written immediately. Both cases
    are reported as ordering warnings; nothing is dropped.
    """

    def __init__(self, stream: BinaryIO, window: int = 64, first_seq: int = 1) -> None:
        self.stream = stream
        self.window = max(1, window)
        self.first_seq = first_seq
        self.emitted = 0
        self._lock = threading.Lock()
        self._next: Dict[str, int] = {}
        self._held: Dict[str, Dict[int, Optional[bytes]]] = {}

    def emit(self, unit: TextUnit, data: bytes) -> None:
        self._accept(unit, data)

    def skip(self, unit: TextUnit) -> None:
        self._accept(unit, None)

    def _accept(self, unit: TextUnit, data: Optional[bytes]) -> None:
        with self._lock:
            expected = self._next.setdefault(unit.source, self.first_seq)

            if unit.seq < expected:
                _report_ordering(
                    "Unit arrived after its slot was passed; writing in arrival order",
                    source=unit.source,
                    seq=unit.seq,
                    expected=expected,
                )
                self._write(data)
                return

            held = self._held.setdefault(unit.source, {})
            held[unit.seq] = data
            self._release_ready(unit.source)

            if len(held) > self.window:
                _report_ordering(
                    "Reordering window exceeded; releasing held units past the gap",
                    source=unit.source,
                    missing_seq=self._next[unit.source],
                    held=len(held),
                )
                self._release_all(unit.source)

    def _release_ready(self, source: str) -> None:
        held = self._held[source]
        expected = self._next[source]
        while expected in held:
            self._write(held.pop(expected))
            expected += 1
        self._next[source] = expected

    def _release_all(self, source: str) -> None:
        held = self._held[source]
        for seq in sorted(held):
            self._write(held.pop(seq))
            self._next[source] = seq + 1

    def _write(self, data: Optional[bytes]) -> None:
        if data is None:
            return
        self.stream.write(data)
        self.stream.flush()
        self.emitted += 1

    def close(self) -> None:
        with self._lock:
            for source, held in self._held.items():
                if not held:
                    continue
                _report_ordering(
                    "Releasing units held behind a gap at shutdown",
                    source=source,
                    missing_seq=self._next[source],
                    held=len(held),
                )
                self._release_all(source)
            self.stream.flush()


class FileSink(OutputSink):
    """Writes each unit to a derived file via temp file and rename.

    Readers never observe a partially written output file. A write for an
    older sequence number than the last one written for the same unit is
    dropped.
    """

    def __init__(self, output_path_for: Callable[[Path], Path]) -> None:
        self.output_path_for = output_path_for
        self.emitted = 0
        self._lock = threading.Lock()
        self._last_seq: Dict[str, int] = {}

    def emit(self, unit: TextUnit, data: bytes) -> None:
        with self._lock:
            last = self._last_seq.get(unit.identity)
            if last is not None and unit.seq < last:
                _report_ordering(
                    "Dropping stale write for an older revision",
                    identity=unit.identity,
                    seq=unit.seq,
                    last_seq=last,
                )
                return
            self._last_seq[unit.identity] = unit.seq

        source_path = Path(unit.identity)
        target = self.output_path_for(source_path)
        atomic_write(target, data, mode_from=source_path)
        with self._lock:
            self.emitted += 1

        logger.info(
            "Output written",
            extra={"identity": unit.identity, "seq": unit.seq, "output": str(target)},
        )

    def skip(self, unit: TextUnit) -> None:
        logger.debug(
            "No output for failed unit; previous output kept",
            extra={"identity": unit.identity, "seq": unit.seq},
        )


def atomic_write(path: Path, data: bytes, mode_from: Optional[Path] = None) -> None:
    """Writes ``data`` to ``path`` through a temp file in the same directory.

    Raises:
        OSError: If the temp file cannot be written or renamed
    """
    directory = str(path.parent) or "."
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=directory)
    try:
        with os.fdopen(tmp_fd, "wb") as f:
            f.write(data)
        if mode_from is not None:
            try:
                shutil.copymode(mode_from, tmp_path)
            except OSError:
                logger.debug(
                    "Could not copy file mode", extra={"source": str(mode_from)}
                )
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
