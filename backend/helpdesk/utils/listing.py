from __future__ import annotations
import math
from typing import Any, Dict, List, Optional


def pagination_meta(raw: Optional[Dict[str, Any]], page: int, limit: int, returned: int) -> Dict[str, int]:
    """Fill in the backend pagination block, deriving what it left out."""
    raw = raw or {}
    total_items = raw.get('totalItems')
    if total_items is None:
        total_items = (page - 1) * limit + returned
    per_page = int(raw.get('itemsPerPage') or limit)
    total_pages = raw.get('totalPages')
    if total_pages is None:
        total_pages = max(1, math.ceil(int(total_items) / per_page)) if per_page else 1
    return {
        'currentPage': int(raw.get('currentPage') or page),
        'totalPages': int(total_pages),
        'totalItems': int(total_items),
        'itemsPerPage': per_page,
        'returned': returned,
    }


def build_list_payload(rows: List[dict], pagination: Dict[str, int], summary: Dict[str, int], **extra: Any):
    payload = {
        'data': {
            'tickets': rows,
            'pagination': pagination,
            'summary': summary,
        }
    }
    payload['data'].update(extra)
    return payload
