"""Named monotonic counters for unique test values.

A ``SequenceRegistry`` hands out ``1, 2, 3, ...`` per name. Tests use it to
build emails, usernames and identifiers that never collide within a run.
Counters are created lazily and live as long as the registry; call
``reset_all()`` between independent runs to keep generated data deterministic.
"""

from __future__ import annotations

import secrets
import threading
from typing import Dict, Optional, Tuple

DEFAULT_SEQUENCE = "default"
IDENTIFIER_SEQUENCE = "identifier"
IDENTIFIER_SEGMENTS: Tuple[str, ...] = ("com", "txntestkit")


class SequenceRegistry:
    """Named counters, safe to share between threads and coroutines."""

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def next(self, name: str = DEFAULT_SEQUENCE) -> int:
        """Increment the named counter and return the new value.

        The first call for a name returns 1.
        """
        with self._lock:
            value = self._counters.get(name, 0) + 1
            self._counters[name] = value
            return value

    def current(self, name: str = DEFAULT_SEQUENCE) -> int:
        """Return the last value handed out for ``name`` (0 if never used)."""
        with self._lock:
            return self._counters.get(name, 0)

    def reset(self, name: str = DEFAULT_SEQUENCE, value: int = 0) -> None:
        """Set the named counter so the next call returns ``value + 1``."""
        with self._lock:
            self._counters[name] = value

    def reset_all(self) -> None:
        """Forget every counter."""
        with self._lock:
            self._counters.clear()

    def unique_identifier(self, suffix: Optional[str] = None) -> str:
        """Build a reverse-DNS identifier such as ``com.txntestkit.order7``.

        Without a ``suffix`` a random lowercase token is used in its place; the
        trailing number always comes from the ``identifier`` sequence.
        """
        stem = suffix if suffix else secrets.token_hex(4)
        return ".".join((*IDENTIFIER_SEGMENTS, f"{stem}{self.next(IDENTIFIER_SEQUENCE)}"))

    def __repr__(self) -> str:
        return f"SequenceRegistry(counters={self._counters!r})"
