from __future__ import annotations
from datetime import datetime
from typing import Any, Dict
from helpdesk.errors import ValidationError


def parse_date(value: str) -> str:
    """Accept YYYY-MM-DD or ISO timestamps; the backend receives the date part."""
    for fmt in ('%Y-%m-%d', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M:%S%z'):
        try:
            return datetime.strptime(value, fmt).strftime('%Y-%m-%d')
        except ValueError:
            continue
    raise ValueError(f'unrecognized date {value}')


def apply_filters(specs: Dict[str, Dict[str, Any]], params: Dict[str, Any]) -> Dict[str, Any]:
    """Generic filter builder for backend list queries.

    specs: { param_name: { 'coerce': type/func (optional), 'validate': callable(optional) } }
    Only params named in specs survive; empty values are dropped.
    """
    out: Dict[str, Any] = {}
    for name, meta in specs.items():
        val = params.get(name)
        if val is None or val == '':
            continue
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except (TypeError, ValueError):
                raise ValidationError({name: f'{name} invalid'}, detail=f'{name} invalid')
        if 'validate' in meta and not meta['validate'](val):
            raise ValidationError({name: f'{name} invalid'}, detail=f'{name} invalid')
        out[name] = val
    if 'dateFrom' in out and 'dateTo' in out and out['dateFrom'] > out['dateTo']:
        raise ValidationError({'dateTo': 'dateTo must not be before dateFrom'}, detail='dateTo must not be before dateFrom')
    return out
