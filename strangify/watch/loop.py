# strangify/watch/loop.py

"""Watch loop orchestrating detection, debouncing, transformation and output."""

import logging
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

from strangify.adapters.sinks import OutputSink
from strangify.adapters.sources import FileSystemSource, StdinSource
from strangify.core.definitions import LOOP_TRANSITIONS, STDIN_SOURCE, LoopState
from strangify.core.domain import PendingRequest, RunReport, StrangifyResult, TextUnit
from strangify.core.exceptions import SourceUnavailable, WatchDegraded
from strangify.core.ruleset import RuleSet
from strangify.service.config import Settings
from strangify.service.pipeline import strangify_unit
from strangify.watch.debouncer import Debouncer
from strangify.watch.detector import ContentChangeDetector
from strangify.watch.watcher import FileWatcher

logger = logging.getLogger(__name__)

# Longest the loop blocks before re-checking watch health
HEALTH_INTERVAL = 1.0

# Coordination queue message kinds
_CHANGED = "changed"
_DELETED = "deleted"
_LOST = "lost"
_LINE = "line"
_EOF = "eof"
_DONE = "done"
_STOP = "stop"

Message = Tuple[str, Any]
WatcherFactory = Callable[[FileSystemSource, Callable[[str, Path], None]], Any]


class WatchLoop:
    """Long-lived orchestrator: Starting -> Running -> Draining -> Stopped.

    The loop thread is the only writer of the debounce table and of the
    in-flight bookkeeping. Observer threads, the stdin reader and worker
    completions reach it only through one queue, and the queue is the
    loop's sole blocking point while running.

    Transformations run on a thread pool, at most one at a time per unit:
    a request that becomes due while the same unit is still in flight is
    parked (latest snapshot wins) until the running one has been emitted.
    """

    def __init__(
        self,
        source: Union[StdinSource, FileSystemSource],
        sink: OutputSink,
        rules: RuleSet,
        settings: Settings,
        watch: bool = False,
        clock: Callable[[], float] = time.monotonic,
        watcher_factory: Optional[WatcherFactory] = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.rules = rules
        self.settings = settings
        self.watch = watch
        self.report = RunReport()

        self._clock = clock
        self._queue: "queue.Queue[Message]" = queue.Queue()
        self._stop_requested = threading.Event()
        self._debouncer = Debouncer(settings.quiescence, clock)
        self._detector = ContentChangeDetector(clock)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._in_flight: Dict[str, Future] = {}
        self._parked: Dict[str, PendingRequest] = {}

        self._watcher_factory = watcher_factory or self._default_watcher
        self._watcher: Optional[Any] = None
        self._retry_at: Optional[float] = None
        self._retry_delay = settings.retry_initial

    @property
    def state(self) -> LoopState:
        return self.report.state

    def _transition(self, new_state: LoopState) -> None:
        current = self.report.state
        if new_state not in LOOP_TRANSITIONS[current]:
            raise RuntimeError(
                f"Illegal loop transition {current.value} -> {new_state.value}"
            )
        self.report.state = new_state
        logger.info(
            "Watch loop state changed",
            extra={"from_state": current.value, "to_state": new_state.value},
        )

    # Lifecycle

    def run(self) -> RunReport:
        """Runs the loop to completion.

        Returns:
            RunReport with counters and the final state

        Raises:
            SourceUnavailable: If the source cannot be opened at startup
        """
        if self.state is not LoopState.STARTING:
            raise RuntimeError("WatchLoop instances run only once")

        self._start()
        try:
            if self.watch:
                self._run_watch()
            else:
                self._run_once()
        finally:
            self._drain()

        logger.info(
            "Watch loop finished",
            extra={
                "dispatched": self.report.dispatched,
                "emitted": self.report.emitted,
                "failed": self.report.failed,
            },
        )
        return self.report

    def stop(self) -> None:
        """Requests a cooperative drain. Safe to call from any thread."""
        self._stop_requested.set()
        self._queue.put((_STOP, None))

    def notify_change(self, kind: str, path: Path) -> None:
        """Observer callback: queues a filesystem notification for the loop."""
        if self.state is LoopState.STOPPED:
            return
        self._queue.put((kind, Path(path)))

    def _start(self) -> None:
        try:
            self.source.open()
        except SourceUnavailable:
            logger.error("Input source unavailable", extra={"target": self.source.name})
            self._transition(LoopState.STOPPED)
            raise

        logger.info(
            "Watch loop starting",
            extra={
                "target": self.source.name,
                "watch": self.watch,
                "mode": self.rules.mode.value,
                "workers": self.settings.max_workers,
                "quiescence_ms": self.settings.quiescence_ms,
            },
        )
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.max_workers, thread_name_prefix="strangify"
        )
        self._transition(LoopState.RUNNING)

    def _run_once(self) -> None:
        if isinstance(self.source, StdinSource):
            for identity, line in self.source.read_lines():
                self._observe(STDIN_SOURCE, identity, line)
        else:
            for path in self.source.list_units():
                self._ingest_path(path)

    def _run_watch(self) -> None:
        if isinstance(self.source, StdinSource):
            reader = threading.Thread(
                target=self._read_stdin, name="strangify-stdin", daemon=True
            )
            reader.start()
        else:
            for path in self.source.list_units():
                self._ingest_path(path)
            self._establish_watch()

        while not self._stop_requested.is_set():
            try:
                kind, payload = self._queue.get(timeout=self._next_timeout())
            except queue.Empty:
                kind, payload = None, None

            if kind == _EOF:
                logger.info("End of input stream reached")
                break
            if kind is not None:
                self._handle(kind, payload)

            self._dispatch_due()
            if isinstance(self.source, FileSystemSource):
                self._check_watch()

    def _drain(self) -> None:
        self._transition(LoopState.DRAINING)

        for request in self._debouncer.flush():
            self._dispatch(request)

        while self._in_flight:
            kind, payload = self._queue.get()
            if kind == _DONE:
                self._complete(payload)

        if self._executor is not None:
            self._executor.shutdown(wait=True)
        self.sink.close()
        self._stop_watcher()
        self._transition(LoopState.STOPPED)

    # Input handling

    def _read_stdin(self) -> None:
        assert isinstance(self.source, StdinSource)
        try:
            for identity, line in self.source.read_lines():
                self._queue.put((_LINE, (identity, line)))
        except (OSError, ValueError):
            logger.error("Reading standard input failed", exc_info=True)
        finally:
            self._queue.put((_EOF, None))

    def _handle(self, kind: str, payload: Any) -> None:
        if kind == _LINE:
            identity, line = payload
            self._observe(STDIN_SOURCE, identity, line)
        elif kind == _CHANGED:
            self._ingest_path(payload)
        elif kind == _DELETED:
            identity = str(payload)
            self._detector.forget(identity)
            self._debouncer.discard(identity)
            logger.info("Input removed", extra={"identity": identity})
        elif kind == _LOST:
            self._degrade("watched target was removed")
        elif kind == _DONE:
            self._complete(payload)

    def _ingest_path(self, path: Path) -> None:
        assert isinstance(self.source, FileSystemSource)
        identity = str(path)
        try:
            content = self.source.read(path)
        except FileNotFoundError:
            logger.debug(
                "File vanished before it could be read", extra={"identity": identity}
            )
            return
        except OSError as e:
            self.report.failed += 1
            logger.warning(
                "Skipping unreadable file",
                extra={"identity": identity, "reason": str(e)},
            )
            return
        self._observe(identity, identity, content)

    def _observe(self, source: str, identity: str, content: bytes) -> None:
        event = self._detector.observe(source, identity, content)
        if event is not None:
            self._debouncer.submit(event)

    # Dispatch

    def _next_timeout(self) -> float:
        now = self._clock()
        timeout = HEALTH_INTERVAL
        for deadline in (self._debouncer.next_deadline(), self._retry_at):
            if deadline is not None:
                timeout = min(timeout, deadline - now)
        return max(0.0, timeout)

    def _dispatch_due(self) -> None:
        for request in self._debouncer.due():
            self._dispatch(request)

    def _dispatch(self, request: PendingRequest) -> None:
        identity = request.identity
        if identity in self._in_flight:
            self._parked[identity] = request
            logger.debug(
                "Unit busy; parking request until the running one is emitted",
                extra={"identity": identity, "seq": request.event.unit.seq},
            )
            return
        self._submit(request.event.unit)

    def _submit(self, unit: TextUnit) -> None:
        assert self._executor is not None
        future = self._executor.submit(self._process, unit)
        self._in_flight[unit.identity] = future
        self.report.dispatched += 1
        future.add_done_callback(
            lambda _f, identity=unit.identity: self._queue.put((_DONE, identity))
        )

    def _process(self, unit: TextUnit) -> StrangifyResult:
        """Worker task: transform, then emit or skip."""
        result = strangify_unit(unit, self.rules)
        try:
            if result.ok and result.data is not None:
                self.sink.emit(unit, result.data)
            else:
                self.sink.skip(unit)
        except OSError as e:
            logger.error(
                "Failed to write output",
                exc_info=True,
                extra={"identity": unit.identity, "seq": unit.seq},
            )
            result.metadata.update(
                {"error": str(e), "status": "failed", "error_type": type(e).__name__}
            )
        return result

    def _complete(self, identity: str) -> None:
        future = self._in_flight.pop(identity, None)
        if future is None:
            return

        try:
            result = future.result()
        except Exception:
            logger.error(
                "Unexpected error in worker task",
                exc_info=True,
                extra={"identity": identity},
            )
            self.report.failed += 1
        else:
            if result.ok:
                self.report.emitted += 1
            else:
                self.report.failed += 1

        parked = self._parked.pop(identity, None)
        if parked is not None:
            self._submit(parked.event.unit)

    # Watch health

    def _default_watcher(
        self, source: FileSystemSource, notify: Callable[[str, Path], None]
    ) -> FileWatcher:
        return FileWatcher(
            source,
            notify,
            use_polling=self.settings.use_polling,
            poll_interval=self.settings.poll_interval,
        )

    def _establish_watch(self) -> bool:
        assert isinstance(self.source, FileSystemSource)
        watcher = self._watcher_factory(self.source, self.notify_change)
        try:
            watcher.start()
        except WatchDegraded as e:
            self._schedule_retry(str(e))
            return False
        self._watcher = watcher
        self._retry_at = None
        self._retry_delay = self.settings.retry_initial
        return True

    def _check_watch(self) -> None:
        if self._watcher is not None:
            if not self._watcher.healthy():
                self._degrade("observer stopped or target missing")
            return

        if self._retry_at is not None and self._clock() >= self._retry_at:
            self._reestablish()

    def _degrade(self, reason: str) -> None:
        if self._watcher is None:
            return
        self._stop_watcher()
        self._retry_delay = self.settings.retry_initial
        self._schedule_retry(reason)

    def _schedule_retry(self, reason: str) -> None:
        error = WatchDegraded(self.source.name, reason)
        self._retry_at = self._clock() + self._retry_delay
        logger.warning(
            str(error),
            extra={"target": self.source.name, "retry_in_s": self._retry_delay},
        )

    def _reestablish(self) -> None:
        assert isinstance(self.source, FileSystemSource)
        self._retry_delay = min(self._retry_delay * 2, self.settings.retry_max)

        if not self.source.exists():
            self._schedule_retry("target still missing")
            return

        if self._establish_watch():
            logger.info("Watch re-established", extra={"target": self.source.name})
            for path in self.source.list_units():
                self._ingest_path(path)

    def _stop_watcher(self) -> None:
        if self._watcher is not None:
            watcher, self._watcher = self._watcher, None
            watcher.stop()
