from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
from helpdesk.services.roles import normalize_role


@dataclass
class LookupOption:
    """Category, department, company, issue type or request type entry."""
    id: str
    name: str
    requires_approval: bool = False

    @classmethod
    def from_api(cls, raw: Any) -> 'LookupOption':
        if not isinstance(raw, dict):
            return cls(id=str(raw), name=str(raw))
        ident = raw.get('id', raw.get('_id'))
        return cls(
            id=str(ident) if ident is not None else '',
            name=raw.get('name') or raw.get('label') or '',
            requires_approval=bool(raw.get('requiresApproval', False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'requiresApproval': self.requires_approval}


@dataclass
class User:
    id: str
    name: str = ''
    email: Optional[str] = None
    role: Optional[str] = None
    category_id: Optional[str] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> 'User':
        category = raw.get('category')
        category_id = raw.get('categoryId')
        if category_id is None and isinstance(category, dict):
            category_id = category.get('id')
        ident = raw.get('id', raw.get('uid', raw.get('_id')))
        return cls(
            id=str(ident) if ident is not None else '',
            name=raw.get('name') or raw.get('fullName') or '',
            email=raw.get('email'),
            role=normalize_role(raw.get('role') or raw.get('roleId')),
            category_id=str(category_id) if category_id is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'email': self.email, 'role': self.role, 'categoryId': self.category_id}
