"""Payload sources: a wordlist file or an in-memory list."""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, List, Optional, Tuple

from .models import WordlistError, WordlistNotFoundError

logger = logging.getLogger(__name__)

# Payload column width used for output alignment never exceeds this.
MAX_PADDING = 40


def _strip_eol(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


class PayloadSource(ABC):
    """Sequential, restartable source of payload strings."""

    @abstractmethod
    def open(self) -> Tuple[int, int]:
        """
        Prepare the source for iteration.

        Returns:
            Tuple of (total payload count, longest payload length).
        """
        pass

    @abstractmethod
    def next(self) -> Optional[str]:
        """Return the next payload, or None once the source is exhausted."""
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class Wordlist(PayloadSource):
    """Line-per-payload wordlist file, read as UTF-8."""

    def __init__(self, path: str):
        self.path = Path(path)
        self.total = 0
        self.max_length = 0
        self._handle: Optional[IO[str]] = None
        self._exhausted = False

    def open(self) -> Tuple[int, int]:
        count = 0
        max_length = 0
        with self._open_file() as f:
            for line in self._read_lines(f):
                count += 1
                max_length = max(max_length, len(line))

        self.close()
        self._handle = self._open_file()
        self._exhausted = False
        self.total = count
        self.max_length = max_length
        logger.debug(f"Wordlist {self.path}: {count} entries, longest {max_length}")
        return count, max_length

    def next(self) -> Optional[str]:
        if self._exhausted or self._handle is None:
            return None
        try:
            line = self._handle.readline()
        except (OSError, UnicodeDecodeError) as e:
            raise WordlistError(f"Could not read wordlist {self.path}: {e}") from e
        if not line:
            self._exhausted = True
            self.close()
            return None
        return _strip_eol(line)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _open_file(self) -> IO[str]:
        try:
            return open(self.path, "r", encoding="utf-8", newline="\n")
        except FileNotFoundError as e:
            raise WordlistNotFoundError(f"Could not read wordlist file at {self.path}") from e
        except OSError as e:
            raise WordlistError(f"Could not open wordlist {self.path}: {e}") from e

    def _read_lines(self, f: IO[str]):
        try:
            for line in f:
                yield _strip_eol(line)
        except (OSError, UnicodeDecodeError) as e:
            raise WordlistError(f"Could not read wordlist {self.path}: {e}") from e


class StaticWordlist(PayloadSource):
    """In-memory payload list."""

    def __init__(self, payloads: List[str]):
        self.payloads = list(payloads)
        self.total = len(self.payloads)
        self.max_length = max((len(p) for p in self.payloads), default=0)
        self._index = 0

    def open(self) -> Tuple[int, int]:
        self._index = 0
        return self.total, self.max_length

    def next(self) -> Optional[str]:
        if self._index >= self.total:
            return None
        payload = self.payloads[self._index]
        self._index += 1
        return payload
