from flask import Blueprint, request
from helpdesk import get_ticket_service
from helpdesk.decorators.auth import require_session

dash_bp = Blueprint('dashboard', __name__)


@dash_bp.get('')
@require_session
def dashboard():
    return get_ticket_service().dashboard(request.args)


@dash_bp.get('/summary')
@require_session
def dashboard_summary():
    body = get_ticket_service().dashboard(request.args)
    return {'summary': body['data']['summary'], 'filters': body['data']['filters'], 'warnings': body['data']['warnings']}
