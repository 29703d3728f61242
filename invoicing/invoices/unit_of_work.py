"""
Invoicing Invoices - Unit of Work
=================================
The transactional boundary around allocate -> save -> bookkeeping.

A unit of work is any zero-argument callable returning a context manager.
Production uses django.db.transaction.atomic: the counter UPDATE, the
invoice rows and the bookkeeping UPDATE commit or roll back together.

InMemoryUnitOfWork gives the in-memory stores the same all-or-nothing
behaviour by snapshotting every participant on entry and restoring the
snapshots when the block raises.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Protocol

UnitOfWork = Callable[[], ContextManager]


class Snapshotable(Protocol):
    def snapshot(self) -> dict:
        ...

    def restore(self, state: dict) -> None:
        ...


class InMemoryUnitOfWork:
    """
    Usage:
        uow = InMemoryUnitOfWork(store, directory, persistence)
        with uow():
            ...

    Restoring is only sound while one batch run owns the participants.
    """

    def __init__(self, *participants: Snapshotable):
        self._participants = participants

    @contextmanager
    def __call__(self) -> Iterator[None]:
        snapshots = [p.snapshot() for p in self._participants]
        try:
            yield
        except BaseException:
            for participant, state in zip(self._participants, snapshots):
                participant.restore(state)
            raise
