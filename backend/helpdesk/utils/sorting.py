from __future__ import annotations
from typing import Iterable, Optional, Tuple
from helpdesk.errors import ValidationError

SORT_ORDERS = ('asc', 'desc')


def normalize_sort(sort_field: Optional[str], order: Optional[str], allowed: Iterable[str],
                   default: Tuple[str, str] = ('createdAt', 'desc')) -> Tuple[str, str]:
    """Validate the ``sort``/``order`` pair forwarded to the backend list endpoints.
    A leading '-' on the field is accepted as shorthand for descending order.
    """
    if not sort_field:
        return default
    token = sort_field.strip()
    if token.startswith('-'):
        token, order = token[1:], 'desc'
    if token not in set(allowed):
        raise ValidationError({'sort': f'Invalid sort field {token}'}, detail=f'Invalid sort field {token}')
    order = (order or default[1]).lower()
    if order not in SORT_ORDERS:
        raise ValidationError({'order': 'order must be asc or desc'}, detail='order must be asc or desc')
    return token, order
