"""Ticket status state machine.

The transition table is keyed by ``(current_status, event)``. Role rules live in
``helpdesk.services.policy``; this module only knows about states, events and
the ticket-level preconditions (comment count, approval requirement).
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Set, Tuple
from helpdesk.errors import InvalidTransition
from helpdesk.models.ticket import Ticket
from helpdesk.utils.fsm import TransitionValidator

EVENT_COMMENT = 'comment'
EVENT_START = 'start'
EVENT_SUBMIT_APPROVAL = 'submit'
EVENT_APPROVE = 'approve'
EVENT_REJECT = 'reject'
EVENT_COMPLETE = 'complete'
EVENT_CLOSE = 'close'
ALL_EVENTS = (
    EVENT_COMMENT, EVENT_START, EVENT_SUBMIT_APPROVAL, EVENT_APPROVE,
    EVENT_REJECT, EVENT_COMPLETE, EVENT_CLOSE,
)

TRANSITIONS: Dict[Tuple[str, str], str] = {
    (Ticket.STATUS_NEW, EVENT_COMMENT): Ticket.STATUS_PROCESSING,
    (Ticket.STATUS_APPROVED, EVENT_COMMENT): Ticket.STATUS_PROCESSING,
    (Ticket.STATUS_NEW, EVENT_START): Ticket.STATUS_PROCESSING,
    (Ticket.STATUS_APPROVED, EVENT_START): Ticket.STATUS_PROCESSING,
    (Ticket.STATUS_NEW, EVENT_SUBMIT_APPROVAL): Ticket.STATUS_PENDING_APPROVAL,
    (Ticket.STATUS_PROCESSING, EVENT_SUBMIT_APPROVAL): Ticket.STATUS_PENDING_APPROVAL,
    (Ticket.STATUS_PENDING_APPROVAL, EVENT_APPROVE): Ticket.STATUS_APPROVED,
    (Ticket.STATUS_PENDING_APPROVAL, EVENT_REJECT): Ticket.STATUS_REJECTED,
    (Ticket.STATUS_PROCESSING, EVENT_COMPLETE): Ticket.STATUS_COMPLETED,
    (Ticket.STATUS_REJECTED, EVENT_CLOSE): Ticket.STATUS_CLOSED,
}


def _build_graph() -> Dict[str, Set[str]]:
    graph: Dict[str, Set[str]] = {s: set() for s in Ticket.ALL_STATUSES}
    for (source, _event), target in TRANSITIONS.items():
        graph[source].add(target)
    return graph


TICKET_FSM = TransitionValidator(_build_graph())

# Lowercased, separator-free spellings seen in backend payloads and filters
STATUS_SYNONYMS: Dict[str, str] = {
    'new': Ticket.STATUS_NEW,
    'open': Ticket.STATUS_NEW,
    'pendingapproval': Ticket.STATUS_PENDING_APPROVAL,
    'pending': Ticket.STATUS_PENDING_APPROVAL,
    'approved': Ticket.STATUS_APPROVED,
    'rejected': Ticket.STATUS_REJECTED,
    'processing': Ticket.STATUS_PROCESSING,
    'inprogress': Ticket.STATUS_PROCESSING,
    'completed': Ticket.STATUS_COMPLETED,
    'resolved': Ticket.STATUS_COMPLETED,
    'closed': Ticket.STATUS_CLOSED,
}

CHANGE_MANAGEMENT_MARKERS = ('change management', 'change request')


def parse_status(raw: Any) -> Optional[str]:
    """Return the canonical status for a backend status value, or None if unknown."""
    if isinstance(raw, dict):
        raw = raw.get('name') or raw.get('status')
    if raw is None:
        return None
    key = str(raw).strip().lower()
    for sep in (' ', '_', '-'):
        key = key.replace(sep, '')
    return STATUS_SYNONYMS.get(key)


def requires_approval(ticket: Ticket) -> bool:
    if ticket.requires_approval:
        return True
    name = (ticket.category_name or '').lower()
    return any(marker in name for marker in CHANGE_MANAGEMENT_MARKERS)


def is_terminal(status: str) -> bool:
    return status in Ticket.TERMINAL_STATUSES


def events_from(status: str) -> List[str]:
    return [event for (source, event) in TRANSITIONS if source == status]


def precondition_failure(status: str, event: str, comment_count: int = 0, needs_approval: bool = False) -> Optional[str]:
    """Return why ``event`` may not fire from ``status``; None when it may."""
    if (status, event) not in TRANSITIONS:
        return f"Cannot {event} a ticket in status {status}"
    if event == EVENT_COMMENT and status == Ticket.STATUS_NEW and comment_count != 0:
        return 'Only the first comment moves a new ticket to Processing'
    if event == EVENT_START and status == Ticket.STATUS_NEW and needs_approval:
        return 'Ticket requires approval before work begins'
    if event == EVENT_SUBMIT_APPROVAL and not needs_approval:
        return 'Ticket does not require approval'
    if event == EVENT_COMPLETE and comment_count < 1:
        return 'Add at least one comment before completing the ticket'
    return None


def next_status(status: str, event: str, comment_count: int = 0, needs_approval: bool = False) -> str:
    reason = precondition_failure(status, event, comment_count, needs_approval)
    if reason:
        raise InvalidTransition(reason)
    target = TRANSITIONS[(status, event)]
    TICKET_FSM.assert_can_transition(status, target)
    return target


def comment_transition(status: str, comment_count: int) -> Optional[str]:
    """Status a new comment moves the ticket to, or None when it stays put.

    ``comment_count`` is the number of comments before the new one.
    """
    if precondition_failure(status, EVENT_COMMENT, comment_count) is None:
        return TRANSITIONS[(status, EVENT_COMMENT)]
    return None


__all__ = [
    'EVENT_COMMENT', 'EVENT_START', 'EVENT_SUBMIT_APPROVAL', 'EVENT_APPROVE', 'EVENT_REJECT',
    'EVENT_COMPLETE', 'EVENT_CLOSE', 'ALL_EVENTS', 'TRANSITIONS', 'TICKET_FSM',
    'parse_status', 'requires_approval', 'is_terminal', 'events_from',
    'precondition_failure', 'next_status', 'comment_transition',
]
