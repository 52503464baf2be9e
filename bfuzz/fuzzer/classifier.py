"""Response filtering against literal and regex ignore lists."""
import re
from typing import Iterable, List, Optional, Pattern, Union

from .models import ConfigError

_ESCAPES = [
    ("\\n", "\n"),
    ("\\r", "\r"),
    ("\\t", "\t"),
    ("\\'", "'"),
]


def unescape_ignores(values: Iterable[str]) -> List[str]:
    """Turn ignore values typed as e.g. ``OK\\n`` into the bytes a server sends."""
    unescaped = []
    for value in values:
        for escaped, char in _ESCAPES:
            value = value.replace(escaped, char)
        unescaped.append(value)
    return unescaped


class ResponseClassifier:
    """Decides whether a response is worth reporting."""

    def __init__(
        self,
        ignore_values: Optional[Iterable[str]] = None,
        ignore_patterns: Optional[Iterable[Union[str, Pattern]]] = None
    ):
        self.ignore_values = frozenset(ignore_values or ())
        self.ignore_patterns = tuple(self._compile(p) for p in (ignore_patterns or ()))

    @classmethod
    def from_config(cls, config) -> "ResponseClassifier":
        """Build from a FuzzConfig, unescaping literal ignore values once."""
        return cls(unescape_ignores(config.ignore), config.ignore_regex)

    def is_interesting(self, response: str) -> bool:
        if response in self.ignore_values:
            return False
        return not any(p.search(response) for p in self.ignore_patterns)

    @staticmethod
    def _compile(pattern: Union[str, Pattern]) -> Pattern:
        if isinstance(pattern, re.Pattern):
            return pattern
        try:
            return re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"Invalid ignore pattern '{pattern}': {e}") from e
