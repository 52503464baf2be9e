"""Fuzzer package initialization."""
from .models import (
    ErrorKind,
    TargetAddress,
    Success,
    Failure,
    AttemptOutcome,
    ScanStats,
    ScanSummary,
    FuzzerException,
    WordlistError,
    WordlistNotFoundError,
    TargetResolutionError,
    ConfigError,
)
from .wordlist import PayloadSource, Wordlist, StaticWordlist, MAX_PADDING
from .probe import ProbeExecutor
from .classifier import ResponseClassifier, unescape_ignores
from .reporter import BaseReporter, CollectingReporter, ConsoleReporter
from .engine import FuzzEngine, fuzz

__all__ = [
    "ErrorKind",
    "TargetAddress",
    "Success",
    "Failure",
    "AttemptOutcome",
    "ScanStats",
    "ScanSummary",
    "FuzzerException",
    "WordlistError",
    "WordlistNotFoundError",
    "TargetResolutionError",
    "ConfigError",
    "PayloadSource",
    "Wordlist",
    "StaticWordlist",
    "MAX_PADDING",
    "ProbeExecutor",
    "ResponseClassifier",
    "unescape_ignores",
    "BaseReporter",
    "CollectingReporter",
    "ConsoleReporter",
    "FuzzEngine",
    "fuzz",
]
