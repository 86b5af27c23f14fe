from __future__ import annotations
from typing import Any, Optional
from helpdesk.constants.roles import (
    ROLE_MAP_BY_ID, ROLE_LABELS, DEFAULT_ROLE_LABEL, CANONICAL_ROLES,
    ROLE_TICKET_CREATOR, ROLE_IT_TEAM, ROLE_DEPARTMENT_HEAD,
)


def normalize_role(value: Any) -> Optional[str]:
    """Map a role token (numeric id, legacy label, canonical code) to its canonical code.

    Unrecognized tokens come back lowercased and trimmed; callers treat them as
    carrying no special privileges. Never raises and is idempotent.
    """
    if value is None:
        return None
    s = str(value).strip().lower()
    if s in ROLE_MAP_BY_ID:
        return ROLE_MAP_BY_ID[s]
    if 'ticket' in s and 'creator' in s:
        return ROLE_TICKET_CREATOR
    if 'it' in s and 'team' in s:
        return ROLE_IT_TEAM
    if 'head' in s or 'department' in s:
        return ROLE_DEPARTMENT_HEAD
    return s


def is_canonical(role: Optional[str]) -> bool:
    return role in CANONICAL_ROLES


def role_label(role: Optional[str]) -> str:
    return ROLE_LABELS.get(normalize_role(role), DEFAULT_ROLE_LABEL)


__all__ = ['normalize_role', 'is_canonical', 'role_label']
