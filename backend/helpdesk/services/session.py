"""Explicit session context.

A ``Session`` is built once per request from the verified token claims and
handed to whatever needs identity. The ``SessionStore`` keeps the normalized
user record per user id so later reads agree on the canonical role; it is
only changed through ``refresh`` (emits ``session_changed``) or through the
``session_invalidated`` signal fired when the backend answers 401.
"""
from __future__ import annotations
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional
from blinker import Namespace
from helpdesk.models.reference import User
from helpdesk.services.roles import normalize_role, role_label, is_canonical

_signals = Namespace()
session_changed = _signals.signal('session-changed')
session_invalidated = _signals.signal('session-invalidated')


@dataclass(frozen=True)
class Session:
    user_id: str
    token: Optional[str] = None
    name: str = ''
    email: Optional[str] = None
    role: Optional[str] = None
    category_id: Optional[str] = None

    @property
    def role_label(self) -> str:
        return role_label(self.role)

    @property
    def has_known_role(self) -> bool:
        return is_canonical(self.role)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'userId': self.user_id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'roleLabel': self.role_label,
            'categoryId': self.category_id,
        }


class SessionStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, User] = {}

    def remember(self, user: User) -> User:
        # re-normalizing on every load is safe: normalize_role is idempotent
        user.role = normalize_role(user.role)
        with self._lock:
            self._records[user.id] = user
        return user

    def get(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._records.get(str(user_id))

    def forget(self, user_id: Optional[str]):
        if user_id is None:
            return
        with self._lock:
            self._records.pop(str(user_id), None)

    def on_invalidated(self, sender, user_id: Optional[str] = None, **extra):
        self.forget(user_id)

    @staticmethod
    def _session(user: User, token: Optional[str]) -> Session:
        return Session(user_id=user.id, token=token, name=user.name, email=user.email,
                       role=user.role, category_id=user.category_id)

    def session_from_claims(self, claims: Dict[str, Any], token: Optional[str] = None) -> Session:
        user_id = claims.get('sub') or claims.get('uid')
        record = self.get(user_id) if user_id is not None else None
        if record is None:
            record = self.remember(User.from_api({**claims, 'id': user_id}))
        return self._session(record, token)

    def refresh(self, session: Session, profile: Dict[str, Any]) -> Session:
        """Replace the stored record with a freshly fetched profile and announce it."""
        user = User.from_api({'id': session.user_id, **profile})
        if not user.id:
            user.id = session.user_id
        self.remember(user)
        fresh = self._session(user, session.token)
        session_changed.send(self, session=fresh)
        return fresh


__all__ = ['Session', 'SessionStore', 'session_changed', 'session_invalidated']
