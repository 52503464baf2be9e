"""Fuzzer data models and exception classes."""
import asyncio
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class ErrorKind(str, Enum):
    """Why a probe failed after all retries."""
    TIMEOUT = "timeout"
    CONNECTION = "connection_error"
    IO = "io_error"


@dataclass(frozen=True)
class TargetAddress:
    """Fuzzing target."""
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    async def resolve(self) -> "TargetAddress":
        """Resolve the host once so every probe connects to the same address."""
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(self.host, self.port, type=socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise TargetResolutionError(f"Could not resolve target '{self.host}': {e}") from e
        if not infos:
            raise TargetResolutionError(f"Could not resolve target '{self.host}'")
        return TargetAddress(infos[0][4][0], self.port)


@dataclass(frozen=True)
class Success:
    """A probe whose read loop ended with the peer closing the stream."""
    payload: str
    response: bytes
    attempts: int = 1

    is_success = True

    @property
    def text(self) -> str:
        return self.response.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Failure:
    """A probe that exhausted its retries."""
    payload: str
    kind: ErrorKind
    message: str
    attempts: int = 1

    is_success = False


AttemptOutcome = Union[Success, Failure]


@dataclass
class ScanStats:
    """Counters owned by the engine's supervising loop."""
    launched: int = 0
    completed: int = 0
    interesting: int = 0
    suppressed: int = 0
    timeouts: int = 0
    errors: int = 0
    in_flight: int = 0
    peak_in_flight: int = 0


@dataclass
class ScanSummary:
    """Final state of a finished scan."""
    target: str
    total: int
    completed: int
    interesting: int
    suppressed: int
    timeouts: int
    errors: int
    peak_in_flight: int
    duration: float
    findings: List[Success] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "total": self.total,
            "completed": self.completed,
            "interesting": self.interesting,
            "suppressed": self.suppressed,
            "timeouts": self.timeouts,
            "errors": self.errors,
            "peak_in_flight": self.peak_in_flight,
            "duration": round(self.duration, 3),
            "findings": [
                {"payload": s.payload, "response": s.text} for s in self.findings
            ],
            "failures": [
                {"payload": f.payload, "kind": f.kind.value, "message": f.message}
                for f in self.failures
            ],
        }


class FuzzerException(Exception):
    """Base class for fatal fuzzer errors."""
    pass


class WordlistError(FuzzerException):
    """Wordlist could not be read or decoded."""
    pass


class WordlistNotFoundError(WordlistError):
    """Wordlist file does not exist."""
    pass


class TargetResolutionError(FuzzerException):
    """Target host could not be resolved."""
    pass


class ConfigError(FuzzerException):
    """Invalid fuzzer configuration."""
    pass


class ProbeError(Exception):
    """A single connect-write-read attempt failed."""
    kind: ErrorKind = ErrorKind.IO

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class ProbeTimeout(ProbeError):
    kind = ErrorKind.TIMEOUT


class ProbeConnectionError(ProbeError):
    kind = ErrorKind.CONNECTION


class ProbeIOError(ProbeError):
    kind = ErrorKind.IO
