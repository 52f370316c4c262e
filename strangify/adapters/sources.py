# strangify/adapters/sources.py

"""Input sources: standard input and filesystem targets."""

import fnmatch
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterator, List, Sequence, Tuple

from strangify.core.definitions import STDIN_SOURCE, TEMP_PREFIX
from strangify.core.exceptions import SourceUnavailable

logger = logging.getLogger(__name__)


class InputSource(ABC):
    """A place text arrives from."""

    name: str

    @abstractmethod
    def open(self) -> None:
        """Validates the source before the loop starts.

        Raises:
            SourceUnavailable: If the target is missing or unreadable
        """
        pass


class StdinSource(InputSource):
    """Line-oriented binary stream; one unit per line.

    A unit's identity is the byte offset of its line, so identities are
    stable and unique for the lifetime of the stream.
    """

    name = STDIN_SOURCE

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def open(self) -> None:
        if self.stream is None or getattr(self.stream, "closed", False):
            raise SourceUnavailable("Standard input is not available")

    @staticmethod
    def identity_for(offset: int) -> str:
        return f"{STDIN_SOURCE}@{offset}"

    def read_lines(self) -> Iterator[Tuple[str, bytes]]:
        """Yields ``(identity, line)`` pairs until end-of-stream.

        Line terminators stay attached to their line.
        """
        offset = 0
        for line in iter(self.stream.readline, b""):
            yield self.identity_for(offset), line
            offset += len(line)


class FileSystemSource(InputSource):
    """A single file, or the matching files below a directory.

    Hidden entries, the sink's temp files and derived output files are never
    treated as inputs, so the tool's own writes do not feed back into it.
    """

    def __init__(
        self,
        target: Path,
        output_suffix: str = "_strange",
        include_globs: Sequence[str] = ("*",),
        recursive: bool = True,
    ) -> None:
        self.target = Path(target).absolute()
        self.name = str(self.target)
        self.output_suffix = output_suffix
        self.include_globs = tuple(include_globs) or ("*",)
        self.recursive = recursive

    @property
    def is_directory(self) -> bool:
        return self.target.is_dir()

    @property
    def watch_root(self) -> Path:
        """Directory an observer must watch to see changes of the target."""
        return self.target if self.is_directory else self.target.parent

    def open(self) -> None:
        if not self.target.exists():
            raise SourceUnavailable(f"Target does not exist: {self.target}")

        if self.is_directory:
            readable = os.access(self.target, os.R_OK | os.X_OK)
        else:
            readable = self.target.is_file() and os.access(self.target, os.R_OK)

        if not readable:
            raise SourceUnavailable(f"Permission denied: {self.target}")

        logger.info(
            "Input source opened",
            extra={"target": self.name, "directory": self.is_directory},
        )

    def exists(self) -> bool:
        return self.target.exists()

    def is_output(self, path: Path) -> bool:
        return path.stem.endswith(self.output_suffix)

    def accepts(self, path: Path) -> bool:
        """Checks whether a path is an input unit of this source."""
        path = Path(path).absolute()

        if not self.is_directory:
            return path == self.target

        try:
            relative = path.relative_to(self.target)
        except ValueError:
            return False

        parts = relative.parts
        if not parts:
            return False
        if not self.recursive and len(parts) > 1:
            return False
        if any(part.startswith(".") for part in parts):
            return False
        if path.name.startswith(TEMP_PREFIX) or self.is_output(path):
            return False

        return any(fnmatch.fnmatch(path.name, glob) for glob in self.include_globs)

    def list_units(self) -> List[Path]:
        """Lists the current input files in sorted path order."""
        if not self.is_directory:
            return [self.target] if self.target.is_file() else []

        candidates = self.target.rglob("*") if self.recursive else self.target.iterdir()
        return sorted(p for p in candidates if p.is_file() and self.accepts(p))

    def read(self, path: Path) -> bytes:
        """Reads a unit in full.

        Raises:
            OSError: If the file vanished or cannot be read
        """
        with open(path, "rb") as f:
            return f.read()

    def output_path_for(self, path: Path) -> Path:
        """Derived sibling path: ``<stem><suffix><ext>``."""
        path = Path(path)
        return path.with_name(f"{path.stem}{self.output_suffix}{path.suffix}")
