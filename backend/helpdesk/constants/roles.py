"""Canonical role codes and the role-keyed tables built on them.
Never rename a canonical code; tokens issued by the backend carry these strings.
"""
from __future__ import annotations
from typing import Dict, Tuple

ROLE_TICKET_CREATOR = 'ticket_creator'
ROLE_IT_TEAM = 'it_team'
ROLE_DEPARTMENT_HEAD = 'department_head'

CANONICAL_ROLES: Tuple[str, ...] = (ROLE_TICKET_CREATOR, ROLE_IT_TEAM, ROLE_DEPARTMENT_HEAD)

# Legacy numeric role ids as issued by older backend builds
ROLE_MAP_BY_ID: Dict[str, str] = {
    '1': ROLE_TICKET_CREATOR,
    '2': ROLE_IT_TEAM,
    '3': ROLE_DEPARTMENT_HEAD,
}

ROLE_LABELS: Dict[str, str] = {
    ROLE_TICKET_CREATOR: 'Ticket Creator',
    ROLE_IT_TEAM: 'IT Team',
    ROLE_DEPARTMENT_HEAD: 'IT Head',
}

DEFAULT_ROLE_LABEL = 'User'
