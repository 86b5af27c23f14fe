"""Error taxonomy shared by services, connector and routes.

Every error carries an HTTP status, a title and a short machine readable
``kind`` so the unified error handler in ``create_app`` can render the same
JSON shape for all of them:

    {"error": {"status": 409, "title": "Conflict", "detail": "...", "kind": "invalid_transition"}}
"""
from __future__ import annotations
from typing import Dict, Optional


class HelpdeskError(Exception):
    status_code = 500
    title = 'Internal Server Error'
    kind = 'error'

    def __init__(self, detail: str = '', status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail or self.title
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict:
        return {
            'error': {
                'status': self.status_code,
                'title': self.title,
                'detail': self.detail,
                'kind': self.kind,
            }
        }


class ValidationError(HelpdeskError):
    """Local pre-submit failure; never reaches the backend."""
    status_code = 400
    title = 'Validation Error'
    kind = 'validation'

    def __init__(self, fields: Dict[str, str], detail: str = 'Validation failed'):
        super().__init__(detail)
        self.fields = dict(fields)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload['error']['fields'] = self.fields
        return payload


class Forbidden(HelpdeskError):
    status_code = 403
    title = 'Forbidden'
    kind = 'forbidden'


class NotFound(HelpdeskError):
    status_code = 404
    title = 'Not Found'
    kind = 'not_found'


class InvalidTransition(HelpdeskError):
    status_code = 409
    title = 'Conflict'
    kind = 'invalid_transition'


class ActionInFlight(HelpdeskError):
    status_code = 409
    title = 'Conflict'
    kind = 'in_flight'


class Unauthorized(HelpdeskError):
    """Session is no longer valid; the auth collaborator clears the token."""
    status_code = 401
    title = 'Unauthorized'
    kind = 'unauthorized'


class BackendError(HelpdeskError):
    status_code = 502
    title = 'Bad Gateway'
    kind = 'backend'


class LookupLoadError(BackendError):
    kind = 'lookup_load'


class TransitionError(BackendError):
    kind = 'transition'


class CommentError(BackendError):
    kind = 'comment'


__all__ = [
    'HelpdeskError', 'ValidationError', 'Forbidden', 'NotFound', 'InvalidTransition',
    'ActionInFlight', 'Unauthorized', 'BackendError', 'LookupLoadError',
    'TransitionError', 'CommentError',
]
