from __future__ import annotations
"""Optimistic update transaction.

    update = OptimisticUpdate(ticket, status='Processing')
    update.run(lambda: backend.mark_processing(ticket.id, text))

``apply`` snapshots the touched attributes before writing the new values,
``run`` performs the remote call and either commits or restores the snapshot.
Backend failures, a 404 from the endpoint included, are re-raised as
``error_cls``; ``Unauthorized`` passes through unchanged so the session layer
can react to it.
"""
import logging
from typing import Any, Callable, Dict, Optional, Type
from helpdesk.errors import BackendError, NotFound, TransitionError, Unauthorized

logger = logging.getLogger(__name__)


class OptimisticUpdate:
    def __init__(self, target: Any, error_cls: Type[BackendError] = TransitionError, **changes: Any):
        self.target = target
        self.changes = changes
        self.error_cls = error_cls
        self.before: Optional[Dict[str, Any]] = None
        self.committed = False

    def apply(self):
        self.before = {k: getattr(self.target, k) for k in self.changes}
        for k, v in self.changes.items():
            setattr(self.target, k, v)
        return self.target

    def commit(self):
        self.committed = True
        self.before = None

    def rollback(self):
        if self.before is None:
            return
        for k, v in self.before.items():
            setattr(self.target, k, v)
        self.before = None

    def run(self, remote_call: Callable[[], Any]) -> Any:
        if self.before is None:
            self.apply()
        try:
            result = remote_call()
        except Unauthorized:
            self.rollback()
            raise
        except (BackendError, NotFound) as e:
            logger.warning('Optimistic update %s rolled back: %s', self.changes, e.detail)
            self.rollback()
            raise self.error_cls(e.detail, status_code=e.status_code) from e
        self.commit()
        return result


__all__ = ['OptimisticUpdate']
