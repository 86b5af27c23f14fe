from __future__ import annotations
from typing import Dict, FrozenSet, List, Optional
from helpdesk.constants.roles import CANONICAL_ROLES, ROLE_IT_TEAM, ROLE_DEPARTMENT_HEAD, ROLE_TICKET_CREATOR
from helpdesk.errors import Forbidden, InvalidTransition
from helpdesk.models.ticket import Ticket
from helpdesk.services import workflow
from helpdesk.services.roles import normalize_role

ANY_ROLE: FrozenSet[str] = frozenset(CANONICAL_ROLES)

# Role table per event; the assignee may additionally complete their own ticket
EVENT_ROLES: Dict[str, FrozenSet[str]] = {
    workflow.EVENT_COMMENT: ANY_ROLE,
    workflow.EVENT_START: frozenset({ROLE_IT_TEAM}),
    workflow.EVENT_SUBMIT_APPROVAL: frozenset({ROLE_TICKET_CREATOR, ROLE_IT_TEAM}),
    workflow.EVENT_APPROVE: frozenset({ROLE_DEPARTMENT_HEAD}),
    workflow.EVENT_REJECT: frozenset({ROLE_DEPARTMENT_HEAD}),
    workflow.EVENT_COMPLETE: frozenset({ROLE_IT_TEAM}),
    workflow.EVENT_CLOSE: ANY_ROLE,
}
ASSIGNEE_EVENTS: FrozenSet[str] = frozenset({workflow.EVENT_COMPLETE})

ASSIGN_ROLES: FrozenSet[str] = frozenset({ROLE_IT_TEAM, ROLE_DEPARTMENT_HEAD})
MUTATE_ROLES: FrozenSet[str] = frozenset({ROLE_IT_TEAM, ROLE_DEPARTMENT_HEAD})

# The comment box is not offered at all in these statuses
COMMENT_LOCKED_STATUSES: FrozenSet[str] = frozenset({
    Ticket.STATUS_COMPLETED, Ticket.STATUS_PENDING_APPROVAL, Ticket.STATUS_REJECTED, Ticket.STATUS_CLOSED,
})


def role_allows(role: Optional[str], event: str, is_assignee: bool = False) -> bool:
    role = normalize_role(role)
    if role in EVENT_ROLES.get(event, frozenset()):
        return True
    return is_assignee and event in ASSIGNEE_EVENTS


def can_transition(role: Optional[str], status: str, event: str, comment_count: int = 0,
                   requires_approval: bool = False, is_assignee: bool = False) -> bool:
    if not role_allows(role, event, is_assignee):
        return False
    return workflow.precondition_failure(status, event, comment_count, requires_approval) is None


def assert_can_transition(role: Optional[str], status: str, event: str, comment_count: int = 0,
                          requires_approval: bool = False, is_assignee: bool = False) -> str:
    """Return the target status or raise Forbidden (role) / InvalidTransition (state)."""
    if not role_allows(role, event, is_assignee):
        raise Forbidden(f"Role {normalize_role(role) or 'anonymous'} may not {event} tickets")
    return workflow.next_status(status, event, comment_count, requires_approval)


def can_view(role: Optional[str]) -> bool:
    # Any authenticated session may read; unknown roles get no extra privileges
    return True


def can_mutate(role: Optional[str], is_assignee: bool = False) -> bool:
    return is_assignee or normalize_role(role) in MUTATE_ROLES


def can_comment(role: Optional[str], status: str) -> bool:
    if status in COMMENT_LOCKED_STATUSES:
        return False
    return normalize_role(role) in ANY_ROLE


def can_assign(role: Optional[str], status: str) -> bool:
    return normalize_role(role) in ASSIGN_ROLES and not workflow.is_terminal(status)


def assert_can_comment(role: Optional[str], status: str):
    if status in COMMENT_LOCKED_STATUSES:
        raise InvalidTransition(f"Comments are closed for tickets in status {status}")
    if not can_comment(role, status):
        raise Forbidden('Role may not comment on tickets')


def available_actions(role: Optional[str], ticket: Ticket, actor_id: Optional[str] = None) -> List[str]:
    """Events the actor may trigger right now; drives which controls are rendered.

    Comment-triggered transitions are not listed; the comment box covers them.
    """
    is_assignee = actor_id is not None and actor_id == ticket.assigned_to_id
    needs_approval = workflow.requires_approval(ticket)
    actions = [
        event for event in workflow.events_from(ticket.status)
        if event != workflow.EVENT_COMMENT and can_transition(
            role, ticket.status, event, ticket.comment_count, needs_approval, is_assignee)
    ]
    if can_assign(role, ticket.status):
        actions.append('assign')
    return actions


__all__ = [
    'EVENT_ROLES', 'COMMENT_LOCKED_STATUSES', 'role_allows', 'can_transition', 'assert_can_transition',
    'can_view', 'can_mutate', 'can_comment', 'can_assign', 'assert_can_comment', 'available_actions',
]
