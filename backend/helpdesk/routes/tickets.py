from __future__ import annotations
from flask import Blueprint, Response, request
from helpdesk import get_backend, get_ticket_service
from helpdesk.decorators.audit import audit_log
from helpdesk.decorators.auth import require_session
from helpdesk.errors import ValidationError
from helpdesk.services import workflow
from helpdesk.services.cascade import CategoryCascade, TicketDraft

tkt_bp = Blueprint('tickets', __name__)


def _transition_meta(data, rv, args, kwargs):
    return {'transition': data.get('transition'), 'status': data.get('status')}


def _form_and_files():
    if request.mimetype == 'multipart/form-data':
        files = [
            (f.filename, f.read(), f.mimetype or 'application/octet-stream')
            for f in request.files.getlist('attachments') if f and f.filename
        ]
        return request.form.to_dict(), files
    return request.get_json(silent=True) or {}, None


@tkt_bp.post('/draft')
@require_session
def update_draft():
    """Apply one field change to a draft and return the cascade consequences."""
    data = request.get_json(silent=True) or {}
    change = data.get('change') or {}
    field_name = change.get('field')
    if not field_name:
        raise ValidationError({'change': 'field required'}, detail='change.field required')
    draft = TicketDraft.from_form(data.get('draft') or {})
    previous_category = draft.category_id
    cleared = draft.apply(field_name, change.get('value'))
    body = {'draft': draft.to_dict(), 'cleared': cleared, 'cascade': None}
    if field_name == 'category' and draft.category_id != previous_category:
        body['cascade'] = CategoryCascade(get_backend()).resolve(draft.category_id).to_dict()
    return body


@tkt_bp.post('')
@require_session
@audit_log('TICKET.CREATE', entity='Ticket', entity_id_key='id', meta_keys=['status', 'requiresApproval'])
def create_ticket():
    form, files = _form_and_files()
    service = get_ticket_service()
    ticket = service.create(form, files)
    return service.render(ticket), 201


@tkt_bp.get('/<ticket_id>')
@require_session
def get_ticket(ticket_id: str):
    return get_ticket_service().detail(ticket_id)


@tkt_bp.get('/<ticket_id>/comments')
@require_session
def list_comments(ticket_id: str):
    body = get_ticket_service().detail(ticket_id)
    return {'data': body['comments'], 'commentBox': body['commentBox'], 'warnings': body['warnings']}


@tkt_bp.post('/<ticket_id>/comments')
@require_session
@audit_log('TICKET.COMMENT', entity='Ticket', entity_id_arg='ticket_id', meta_builder=_transition_meta)
def add_comment(ticket_id: str):
    data = request.get_json(silent=True) or {}
    return get_ticket_service().add_comment(ticket_id, data.get('comment')), 201


@tkt_bp.post('/<ticket_id>/assign')
@require_session
@audit_log('TICKET.ASSIGN', entity='Ticket', entity_id_arg='ticket_id', meta_keys=['assignedTo'])
def assign_ticket(ticket_id: str):
    data = request.get_json(silent=True) or {}
    return get_ticket_service().assign(ticket_id, data.get('assignToId'))


@tkt_bp.post('/<ticket_id>/start')
@require_session
@audit_log('TICKET.START', entity='Ticket', entity_id_arg='ticket_id', meta_builder=_transition_meta)
def start_ticket(ticket_id: str):
    return get_ticket_service().transition(ticket_id, workflow.EVENT_START)


@tkt_bp.post('/<ticket_id>/submit')
@require_session
@audit_log('TICKET.SUBMIT', entity='Ticket', entity_id_arg='ticket_id', meta_builder=_transition_meta)
def submit_ticket(ticket_id: str):
    return get_ticket_service().transition(ticket_id, workflow.EVENT_SUBMIT_APPROVAL)


@tkt_bp.post('/<ticket_id>/approve')
@require_session
@audit_log('TICKET.APPROVE', entity='Ticket', entity_id_arg='ticket_id', meta_builder=_transition_meta)
def approve_ticket(ticket_id: str):
    return get_ticket_service().transition(ticket_id, workflow.EVENT_APPROVE)


@tkt_bp.post('/<ticket_id>/reject')
@require_session
@audit_log('TICKET.REJECT', entity='Ticket', entity_id_arg='ticket_id', meta_builder=_transition_meta)
def reject_ticket(ticket_id: str):
    return get_ticket_service().transition(ticket_id, workflow.EVENT_REJECT)


@tkt_bp.post('/<ticket_id>/complete')
@require_session
@audit_log('TICKET.COMPLETE', entity='Ticket', entity_id_arg='ticket_id', meta_builder=_transition_meta)
def complete_ticket(ticket_id: str):
    return get_ticket_service().transition(ticket_id, workflow.EVENT_COMPLETE)


@tkt_bp.post('/<ticket_id>/close')
@require_session
@audit_log('TICKET.CLOSE', entity='Ticket', entity_id_arg='ticket_id', meta_builder=_transition_meta)
def close_ticket(ticket_id: str):
    return get_ticket_service().transition(ticket_id, workflow.EVENT_CLOSE)


@tkt_bp.get('/attachments/<attachment_id>/download')
@require_session
def download_attachment(attachment_id: str):
    content, content_type, filename = get_backend().download_attachment(attachment_id)
    resp = Response(content, mimetype=content_type)
    resp.headers['Content-Disposition'] = f'attachment; filename="{filename or attachment_id}"'
    return resp
