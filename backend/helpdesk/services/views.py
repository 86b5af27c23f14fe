"""Ticket list view configuration keyed by canonical role.

One parameterized list view serves every dashboard; what differs per role is
data: where tickets come from, which filters and columns show, and which row
actions may be offered. Row actions are further narrowed per ticket by the
authorization matrix.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from helpdesk.constants.roles import ROLE_TICKET_CREATOR, ROLE_IT_TEAM, ROLE_DEPARTMENT_HEAD
from helpdesk.models.ticket import Ticket
from helpdesk.services.roles import normalize_role
from helpdesk.services import workflow

BASE_COLUMNS = ('ticketNumber', 'category', 'severityLevel', 'status', 'assignedTo', 'createdAt')
SORT_FIELDS = ('createdAt', 'updatedAt', 'status', 'severityLevel', 'ticketNumber')


@dataclass(frozen=True)
class ListView:
    title: str
    mine: bool
    filters: Tuple[str, ...]
    columns: Tuple[str, ...]
    row_actions: Tuple[str, ...]
    status_options: Tuple[str, ...] = Ticket.ALL_STATUSES
    show_summary: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'source': 'my-tickets' if self.mine else 'tickets',
            'filters': list(self.filters),
            'columns': list(self.columns),
            'rowActions': list(self.row_actions),
            'statusOptions': list(self.status_options),
            'sortFields': list(SORT_FIELDS),
        }


LIST_VIEWS: Dict[str, ListView] = {
    ROLE_TICKET_CREATOR: ListView(
        title='My Tickets',
        mine=True,
        filters=('status', 'dateFrom', 'dateTo'),
        columns=BASE_COLUMNS,
        row_actions=('view', workflow.EVENT_SUBMIT_APPROVAL, workflow.EVENT_CLOSE),
    ),
    ROLE_IT_TEAM: ListView(
        title='IT Team Dashboard',
        mine=True,
        filters=('assignedTo', 'status', 'dateFrom', 'dateTo'),
        columns=('ticketNumber', 'fullName') + BASE_COLUMNS[1:],
        row_actions=('view', workflow.EVENT_START, workflow.EVENT_SUBMIT_APPROVAL,
                     workflow.EVENT_COMPLETE, workflow.EVENT_CLOSE, 'assign'),
    ),
    ROLE_DEPARTMENT_HEAD: ListView(
        title='Department Head Dashboard',
        mine=False,
        filters=('category', 'assignedTo', 'status', 'dateFrom', 'dateTo'),
        columns=('ticketNumber', 'fullName', 'department') + BASE_COLUMNS[1:],
        row_actions=('view', workflow.EVENT_APPROVE, workflow.EVENT_REJECT, workflow.EVENT_CLOSE, 'assign'),
    ),
}

# Unknown roles get the most restricted view
DEFAULT_VIEW = LIST_VIEWS[ROLE_TICKET_CREATOR]


def view_for(role: Optional[str]) -> ListView:
    return LIST_VIEWS.get(normalize_role(role), DEFAULT_VIEW)


__all__ = ['ListView', 'LIST_VIEWS', 'DEFAULT_VIEW', 'SORT_FIELDS', 'view_for']
