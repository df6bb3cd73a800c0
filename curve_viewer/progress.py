"""Progress reporting and cooperative cancellation shared by import and sync.

Progress callbacks have the signature ``callback(current, total, message)``.
Long loops check a :class:`CancelToken` between iterations; results computed
before cancellation stay valid.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

ProgressCallback = Callable[[int, int, str], None]


class CancelToken:
    """Thread-safe cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def is_cancelled(token: Optional[CancelToken]) -> bool:
    return token is not None and token.cancelled
