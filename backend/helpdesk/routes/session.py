from flask import Blueprint, current_app, g
from helpdesk import get_backend
from helpdesk.decorators.auth import require_session, current_session

sess_bp = Blueprint('session', __name__)


@sess_bp.get('/session')
@require_session
def get_session():
    return current_session().to_dict()


@sess_bp.post('/session/refresh')
@require_session
def refresh_session():
    store = current_app.extensions['helpdesk_sessions']
    profile = get_backend().get_profile()
    g.helpdesk_session = store.refresh(current_session(), profile)
    return current_session().to_dict()
