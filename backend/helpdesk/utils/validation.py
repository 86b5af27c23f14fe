from __future__ import annotations
"""Reusable validation helpers for ticket forms and query parameters.

``validate_status`` raises straight away (single field, query string); the
``validate_*`` message helpers return an error string or None so form
validation can collect a per-field map before raising once.
"""
from typing import Iterable, Optional
from helpdesk.errors import ValidationError


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or raises ValidationError.
    """
    if new_status not in allowed:
        raise ValidationError({field_name: f'{field_name} invalid'}, detail=f'{field_name} invalid')
    return new_status


def validate_length(value: Optional[str], max_length: int, label: str) -> Optional[str]:
    if value and len(value) > max_length:
        return f'{label} must be {max_length} characters or fewer'
    return None


def validate_choice(value: Optional[str], allowed: Iterable[str], label: str) -> Optional[str]:
    allowed = tuple(allowed)
    if value not in allowed:
        return f"{label} must be one of {', '.join(allowed)}"
    return None


def validate_required(value: Optional[str], label: str) -> Optional[str]:
    if not value or not str(value).strip():
        return f'{label} is required'
    return None


__all__ = ['validate_status', 'validate_length', 'validate_choice', 'validate_required']
