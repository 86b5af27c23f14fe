from flask import Flask, current_app, g, url_for
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import os

from helpdesk.connectors.backend import BackendConnector
from helpdesk.errors import HelpdeskError, Unauthorized
from helpdesk.services.session import SessionStore, session_invalidated
from helpdesk.utils.inflight import InFlightRegistry

load_dotenv()

jwt = JWTManager()

HTTP_KINDS = {401: 'unauthorized', 403: 'forbidden', 404: 'not_found', 405: 'method_not_allowed'}


def _error(status: int, title: str, detail: str, kind: str):
    return {'error': {'status': status, 'title': title, 'detail': detail, 'kind': kind}}, status


def create_app(config: Optional[Dict[str, Any]] = None):
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['HELPDESK_API_URL'] = os.getenv('HELPDESK_API_URL', 'http://localhost:5000/api')
    app.config['BACKEND_TIMEOUT'] = float(os.getenv('BACKEND_TIMEOUT', '10'))
    app.config['SUMMARY_FETCH_LIMIT'] = int(os.getenv('SUMMARY_FETCH_LIMIT', '500'))
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')
    # httpx transport override (tests mount an in-memory backend here)
    app.config['BACKEND_TRANSPORT'] = None

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    app.logger.setLevel(app.config['LOG_LEVEL'])

    jwt.init_app(app)

    sessions = SessionStore()
    app.extensions['helpdesk_sessions'] = sessions
    app.extensions['helpdesk_inflight'] = InFlightRegistry()
    session_invalidated.connect(sessions.on_invalidated)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _error(401, 'Unauthorized', reason, 'unauthorized')

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _error(401, 'Unauthorized', reason, 'unauthorized')

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _error(401, 'Unauthorized', 'Token has expired', 'unauthorized')

    from .routes.session import sess_bp
    from .routes.lookups import lkp_bp
    from .routes.tickets import tkt_bp
    from .routes.dashboard import dash_bp
    app.register_blueprint(sess_bp)
    app.register_blueprint(lkp_bp, url_prefix='/lookups')
    app.register_blueprint(tkt_bp, url_prefix='/tickets')
    app.register_blueprint(dash_bp, url_prefix='/dashboard')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # identity and connector are per request, even when an app context outlives it
    @app.teardown_request
    def close_backend(exc):
        g.pop('helpdesk_session', None)
        backend = g.pop('helpdesk_backend', None)
        if backend is not None:
            backend.close()

    @app.errorhandler(HelpdeskError)
    def handle_helpdesk_error(e):  # type: ignore
        if isinstance(e, Unauthorized):
            session = g.get('helpdesk_session')
            session_invalidated.send(app, user_id=session.user_id if session else None)
        if e.status_code >= 500:
            app.logger.warning('%s: %s', type(e).__name__, e.detail)
        return e.to_payload(), e.status_code

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            return _error(e.code, e.name, e.description, HTTP_KINDS.get(e.code, 'http'))
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return _error(500, 'Internal Server Error', 'Unexpected error', 'error')

    return app


def get_backend() -> BackendConnector:
    """Connector bound to the current request's bearer token; closed at teardown."""
    if 'helpdesk_backend' not in g:
        session = g.get('helpdesk_session')
        g.helpdesk_backend = BackendConnector(
            current_app.config['HELPDESK_API_URL'],
            token=session.token if session else None,
            timeout=current_app.config['BACKEND_TIMEOUT'],
            transport=current_app.config.get('BACKEND_TRANSPORT'),
        )
    return g.helpdesk_backend


def get_ticket_service():
    from helpdesk.services.tickets import TicketService
    return TicketService(
        get_backend(),
        g.helpdesk_session,
        current_app.extensions['helpdesk_inflight'],
        summary_fetch_limit=current_app.config['SUMMARY_FETCH_LIMIT'],
        attachment_url=lambda attachment_id: url_for('tickets.download_attachment', attachment_id=attachment_id),
    )
