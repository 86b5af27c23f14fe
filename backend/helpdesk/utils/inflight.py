from __future__ import annotations
import threading
from contextlib import contextmanager
from typing import Hashable, Set, Tuple
from helpdesk.errors import ActionInFlight


class InFlightRegistry:
    """Rejects a second concurrent invocation of the same action on the same ticket.

    Mirrors disabling an action control while its request is pending. Different
    tickets and different actions never block each other.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._held: Set[Tuple[Hashable, str]] = set()

    def is_held(self, ticket_id: Hashable, action: str) -> bool:
        with self._lock:
            return (str(ticket_id), action) in self._held

    @contextmanager
    def hold(self, ticket_id: Hashable, action: str):
        key = (str(ticket_id), action)
        with self._lock:
            if key in self._held:
                raise ActionInFlight(f'{action} already in progress for ticket {ticket_id}')
            self._held.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._held.discard(key)


__all__ = ['InFlightRegistry']
