"""
Invoicing Batch - Cancellation
==============================
Cooperative cancellation. The orchestrator checks the token before each
group; a group already in progress completes or rolls back as a whole.
"""

from __future__ import annotations

import threading
from typing import Optional


class CancellationToken:

    def __init__(self):
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by operator") -> None:
        self._reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason
