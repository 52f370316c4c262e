# main.py

"""Command-line entry point for the strangify watcher.

``strangify [-w] [-r RULES] [target]`` transforms standard input (one unit
per line) or a file/directory target (one unit per file, written to a
derived sibling file). With ``-w`` the process stays resident and
re-transforms every unit whose content changes until it is stopped.
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import BinaryIO, List, Optional

from strangify.adapters.sinks import FileSink, OutputSink, StreamSink
from strangify.adapters.sources import FileSystemSource, StdinSource
from strangify.core.definitions import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_OK,
    EXIT_SOURCE_UNAVAILABLE,
    EXIT_UNIT_FAILURES,
)
from strangify.core.exceptions import ConfigurationError, SourceUnavailable
from strangify.core.loader import load_rule_set
from strangify.core.ruleset import RuleSet
from strangify.engine.strangifier import is_reversible
from strangify.logging_config import configure_logging
from strangify.service.config import Settings, load_settings
from strangify.watch.loop import WatchLoop

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the command line."""
    parser = argparse.ArgumentParser(
        prog="strangify",
        description="Deterministically strangify text, once or on every change.",
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="stay resident and re-transform on every change",
    )
    parser.add_argument(
        "-r",
        "--rules",
        type=Path,
        default=None,
        help="YAML rule set (default: packaged rules or STRANGIFY_RULES_PATH)",
    )
    parser.add_argument(
        "target",
        nargs="?",
        type=Path,
        default=None,
        help="file or directory to transform; standard input when omitted",
    )
    return parser


def build_loop(
    target: Optional[Path],
    watch: bool,
    rules: RuleSet,
    settings: Settings,
    stdin: BinaryIO,
    stdout: BinaryIO,
) -> WatchLoop:
    """Wires the source and sink matching ``target`` into a WatchLoop."""
    sink: OutputSink
    if target is None:
        source = StdinSource(stdin)
        sink = StreamSink(stdout, window=settings.reorder_window)
        return WatchLoop(source, sink, rules, settings, watch=watch)

    fs_source = FileSystemSource(
        target,
        output_suffix=settings.output_suffix,
        include_globs=settings.include_globs,
        recursive=settings.recursive,
    )
    sink = FileSink(fs_source.output_path_for)
    return WatchLoop(fs_source, sink, rules, settings, watch=watch)


def _install_signal_handlers(loop: WatchLoop) -> dict:
    """Routes SIGINT/SIGTERM to a cooperative stop. Main thread only."""
    if threading.current_thread() is not threading.main_thread():
        return {}

    def _handle(signum, _frame):
        logger.info(
            "Stop signal received", extra={"signal": signal.Signals(signum).name}
        )
        loop.stop()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handle)
    return previous


def _restore_signal_handlers(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def main(
    argv: Optional[List[str]] = None,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
) -> int:
    """Run the command line and return the process exit code."""
    args = build_arg_parser().parse_args(argv)

    try:
        overrides = {"rules_path": args.rules} if args.rules is not None else {}
        settings = load_settings(**overrides)
    except ConfigurationError as e:
        print(f"strangify: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR

    configure_logging(settings.log_level, settings.log_format)

    try:
        rules = load_rule_set(settings.rules_path)
    except ConfigurationError as e:
        print(f"strangify: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR

    logger.info(
        "Rule set ready",
        extra={"rule_set": rules.name, "reversible": is_reversible(rules)},
    )

    loop = build_loop(
        args.target,
        args.watch,
        rules,
        settings,
        stdin=stdin if stdin is not None else sys.stdin.buffer,
        stdout=stdout if stdout is not None else sys.stdout.buffer,
    )

    previous = _install_signal_handlers(loop)
    try:
        report = loop.run()
    except SourceUnavailable as e:
        print(f"strangify: {e}", file=sys.stderr)
        return EXIT_SOURCE_UNAVAILABLE
    finally:
        _restore_signal_handlers(previous)

    if not args.watch and report.failed:
        logger.warning("Some units failed", extra={"failed": report.failed})
        return EXIT_UNIT_FAILURES

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
