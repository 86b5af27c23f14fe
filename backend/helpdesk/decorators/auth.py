from functools import wraps
from flask import current_app, g, request
from flask_jwt_extended import verify_jwt_in_request, get_jwt
from helpdesk.services.session import Session


def load_session() -> Session:
    """Verify the bearer token and build this request's session once."""
    if 'helpdesk_session' in g:
        return g.helpdesk_session
    verify_jwt_in_request()
    store = current_app.extensions['helpdesk_sessions']
    scheme, _, token = request.headers.get('Authorization', '').partition(' ')
    g.helpdesk_session = store.session_from_claims(get_jwt(), token or None)
    return g.helpdesk_session


def current_session() -> Session:
    return g.helpdesk_session


def require_session(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        load_session()
        return fn(*args, **kwargs)
    return wrapper
