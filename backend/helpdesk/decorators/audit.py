from __future__ import annotations
"""Audit logging decorator for ticket-mutating route handlers.

Usage examples:

@audit_log('TICKET.APPROVE', entity='Ticket', entity_id_arg='ticket_id', meta_keys=['status'])
def approve_ticket(ticket_id): ...

@audit_log('TICKET.COMMENT', entity='Ticket', entity_id_key='id',
           meta_builder=lambda data, rv, args, kwargs: {'transition': data.get('transition')})
def add_comment(ticket_id): ...

Parameters:
  action: required audit action code (e.g. TICKET.CREATE)
  entity: optional entity label
  entity_id_key: key in the returned JSON object whose value becomes entity_id.
  entity_id_arg: name of the path parameter to use for entity_id (fallback if entity_id_key absent).
  meta_keys: list of keys to project from returned JSON into meta dict (shallow copy).
  meta_builder: callable returning a meta dict; receives (data, original_return_value, args, kwargs).
    If provided it overrides meta_keys.

Entries go to the ``helpdesk.audit`` logger; only successful handler returns
are recorded, failures surface through the error handler instead.
"""

import logging
from functools import wraps
from typing import Any, Callable, Iterable, Optional
from flask import g

audit_logger = logging.getLogger('helpdesk.audit')


def _extract_payload(rv: Any):
    """Return (data, original_rv) where data is the JSON-able dict for inspection."""
    if isinstance(rv, tuple) and rv:
        return rv[0], rv
    return rv, rv


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, Any, tuple, dict], dict]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            rv = fn(*args, **kwargs)
            try:
                data, _ = _extract_payload(rv)
                if not isinstance(data, dict):
                    data = {}
                entity_id = None
                if entity_id_key and entity_id_key in data:
                    entity_id = data.get(entity_id_key)
                elif entity_id_arg and entity_id_arg in kwargs:
                    entity_id = kwargs.get(entity_id_arg)
                if meta_builder:
                    meta = meta_builder(data, rv, args, kwargs)
                elif meta_keys:
                    meta = {k: data.get(k) for k in meta_keys if k in data}
                else:
                    meta = {}
                session = g.get('helpdesk_session')
                actor = session.user_id if session else None
                audit_logger.info(
                    '%s entity=%s id=%s actor=%s meta=%s', action, entity, entity_id, actor, meta,
                    extra={'audit_action': action, 'audit_entity_id': entity_id, 'audit_actor': actor, 'audit_meta': meta},
                )
            except Exception:
                # audit must not interfere with the main response
                audit_logger.exception('Audit logging failed for %s', action)
            return rv
        return wrapper
    return outer
