"""Ticket flows on top of the backend connector.

Ordering inside one ticket flow is strict: the comment POST finishes before
the dependent status call is attempted, and the ticket is re-fetched after
both so responses reflect backend state rather than the optimistic copy.
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple
from helpdesk.config.pagination import normalize_pagination
from helpdesk.errors import (
    BackendError, CommentError, Forbidden, InvalidTransition, NotFound, TransitionError, Unauthorized,
    ValidationError,
)
from helpdesk.models.ticket import Comment, Ticket
from helpdesk.services import policy, workflow
from helpdesk.services.attachments import attachment_json
from helpdesk.services.cascade import CategoryCascade, TicketDraft
from helpdesk.services.optimistic import OptimisticUpdate
from helpdesk.services.session import Session
from helpdesk.services.summary import from_server_summary, summarize
from helpdesk.services.views import SORT_FIELDS, view_for
from helpdesk.utils.filters import apply_filters, parse_date
from helpdesk.utils.inflight import InFlightRegistry
from helpdesk.utils.listing import build_list_payload, pagination_meta
from helpdesk.utils.sorting import normalize_sort
from helpdesk.utils.validation import validate_length, validate_required, validate_status

logger = logging.getLogger(__name__)

FILTER_SPECS: Dict[str, Dict[str, Any]] = {
    'category': {'coerce': str},
    'assignedTo': {'coerce': str},
    'status': {'coerce': lambda v: workflow.parse_status(v) or v},
    'dateFrom': {'coerce': parse_date},
    'dateTo': {'coerce': parse_date},
}

MSG_COMMENTS_UNAVAILABLE = 'Comments could not be loaded'
MSG_REFRESH_FAILED = 'Ticket could not be refreshed; showing last known state'
MSG_SUMMARY_INCOMPLETE = 'Summary counts may be incomplete'


class TicketService:
    def __init__(self, backend, session: Session, inflight: InFlightRegistry,
                 summary_fetch_limit: int = 500, attachment_url: Optional[Callable[[str], str]] = None):
        self.backend = backend
        self.session = session
        self.inflight = inflight
        self.summary_fetch_limit = summary_fetch_limit
        self.attachment_url = attachment_url or backend.attachment_download_url
        self.cascade = CategoryCascade(backend)

    # Reads

    def _load(self, ticket_id: str) -> Ticket:
        return Ticket.from_api(self.backend.get_ticket(ticket_id))

    def _comments(self, ticket_id: str) -> Tuple[Optional[List[Comment]], Optional[str]]:
        """Comments degrade to absent instead of failing the ticket view."""
        try:
            rows = self.backend.list_comments(ticket_id)
        except Unauthorized:
            raise
        except BackendError as e:
            logger.warning('Failed to load comments for ticket %s: %s', ticket_id, e.detail)
            return None, MSG_COMMENTS_UNAVAILABLE
        return [Comment.from_api(r) for r in rows if isinstance(r, dict)], None

    def _with_comments(self, ticket: Ticket) -> Tuple[Ticket, List[str]]:
        comments, warning = self._comments(ticket.id)
        if comments is not None:
            ticket.comments = comments
        return ticket, [warning] if warning else []

    def is_assignee(self, ticket: Ticket) -> bool:
        return bool(ticket.assigned_to_id) and ticket.assigned_to_id == self.session.user_id

    def actions_for(self, ticket: Ticket) -> List[str]:
        return policy.available_actions(self.session.role, ticket, self.session.user_id)

    def render(self, ticket: Ticket, warnings: Optional[List[str]] = None) -> Dict[str, Any]:
        body = ticket.to_dict()
        body['comments'] = [c.to_dict() for c in ticket.comments]
        body['attachments'] = [attachment_json(a, self.attachment_url(a.id)) for a in ticket.attachments]
        body['actions'] = self.actions_for(ticket)
        # None means the comment box is not offered at all
        body['commentBox'] = (
            {'maxLength': Comment.MAX_LENGTH} if policy.can_comment(self.session.role, ticket.status) else None
        )
        body['canMutate'] = policy.can_mutate(self.session.role, self.is_assignee(ticket))
        body['warnings'] = list(warnings or [])
        return body

    def detail(self, ticket_id: str) -> Dict[str, Any]:
        ticket, warnings = self._with_comments(self._load(ticket_id))
        return self.render(ticket, warnings)

    def _refetch(self, fallback: Ticket, warnings: List[str]) -> Dict[str, Any]:
        try:
            ticket, more = self._with_comments(self._load(fallback.id))
        except Unauthorized:
            raise
        except BackendError as e:
            logger.warning('Re-fetch of ticket %s failed: %s', fallback.id, e.detail)
            return self.render(fallback, warnings + [MSG_REFRESH_FAILED])
        return self.render(ticket, warnings + more)

    # Creation

    def create(self, form: Dict[str, Any], files=None) -> Ticket:
        draft = TicketDraft.from_form(form)
        # local rules first; nothing reaches the network while these fail
        draft.validate()
        options = self.cascade.resolve(draft.category_id)
        draft.validate(options)
        payload = draft.to_payload()
        if draft.requires_approval(options):
            payload['requiresApproval'] = True
        ticket = Ticket.from_api(self.backend.create_ticket(payload, files))
        logger.info('Ticket %s created by %s', ticket.id, self.session.user_id)
        return ticket

    # Comments and transitions

    def add_comment(self, ticket_id: str, text: Any) -> Dict[str, Any]:
        text = '' if text is None else str(text).strip()
        message = validate_required(text, 'Comment') or validate_length(text, Comment.MAX_LENGTH, 'Comment')
        if message:
            raise ValidationError({'comment': message}, detail=message)
        with self.inflight.hold(ticket_id, workflow.EVENT_COMMENT):
            ticket, warnings = self._with_comments(self._load(ticket_id))
            policy.assert_can_comment(self.session.role, ticket.status)
            previous = ticket.status
            target = workflow.comment_transition(ticket.status, ticket.comment_count)
            try:
                created = self.backend.add_comment(ticket_id, text)
            except Unauthorized:
                raise
            except BackendError as e:
                # no dependent transition is attempted after a failed comment
                raise CommentError(e.detail, status_code=e.status_code) from e
            transition = {'event': workflow.EVENT_COMMENT, 'from': previous, 'to': target, 'applied': False}
            if target:
                update = OptimisticUpdate(ticket, status=target)
                try:
                    update.run(lambda: self.backend.mark_processing(ticket_id, text, send_email=True))
                    transition['applied'] = True
                except TransitionError as e:
                    warnings.append(f'Comment saved but status change failed: {e.detail}')
            body = self._refetch(ticket, warnings)
        body['comment'] = Comment.from_api(created or {'comment': text}).to_dict()
        body['transition'] = transition if target else None
        return body

    def _persist(self, ticket_id: str, event: str, target: str):
        if event in (workflow.EVENT_START, workflow.EVENT_SUBMIT_APPROVAL):
            return self.backend.set_status(ticket_id, target)
        return self.backend.transition(ticket_id, event, send_email=True)

    def transition(self, ticket_id: str, event: str) -> Dict[str, Any]:
        if event not in workflow.ALL_EVENTS or event == workflow.EVENT_COMMENT:
            raise InvalidTransition(f'Unknown ticket action {event}')
        with self.inflight.hold(ticket_id, event):
            ticket, warnings = self._with_comments(self._load(ticket_id))
            previous = ticket.status
            target = policy.assert_can_transition(
                self.session.role, ticket.status, event, ticket.comment_count,
                workflow.requires_approval(ticket), self.is_assignee(ticket),
            )
            OptimisticUpdate(ticket, status=target).run(lambda: self._persist(ticket_id, event, target))
            logger.info('Ticket %s %s: %s -> %s by %s', ticket_id, event, previous, target, self.session.user_id)
            body = self._refetch(ticket, warnings)
        body['transition'] = {'event': event, 'from': previous, 'to': target, 'applied': True}
        return body

    def assign(self, ticket_id: str, assignee_id: Any) -> Dict[str, Any]:
        assignee_id = '' if assignee_id is None else str(assignee_id).strip()
        if not assignee_id:
            raise ValidationError({'assignToId': 'Assignee is required'}, detail='Assignee is required')
        with self.inflight.hold(ticket_id, 'assign'):
            ticket, warnings = self._with_comments(self._load(ticket_id))
            if workflow.is_terminal(ticket.status):
                raise InvalidTransition(f'Cannot assign a ticket in status {ticket.status}')
            if not policy.can_assign(self.session.role, ticket.status):
                raise Forbidden('Role may not assign tickets')
            if ticket.category_id:
                eligible = {u.id for u in self.cascade.resolve_assignees(ticket.category_id)}
                if assignee_id not in eligible:
                    raise ValidationError({'assignToId': 'Assignee is not eligible for this category'},
                                          detail='Assignee is not eligible for this category')
            OptimisticUpdate(ticket, assigned_to_id=assignee_id).run(lambda: self.backend.assign(ticket_id, assignee_id))
            return self._refetch(ticket, warnings)

    # Dashboard

    def dashboard(self, args: Dict[str, Any]) -> Dict[str, Any]:
        view = view_for(self.session.role)
        try:
            page, limit = normalize_pagination(args.get('page'), args.get('limit'))
        except ValueError as e:
            raise ValidationError({'page': str(e)}, detail=str(e))
        filters = apply_filters({k: v for k, v in FILTER_SPECS.items() if k in view.filters}, args)
        if 'status' in filters:
            validate_status(filters['status'], view.status_options)
        sort_field, order = normalize_sort(args.get('sort'), args.get('order'), SORT_FIELDS)
        query = dict(filters, page=page, limit=limit, sort=sort_field, order=order)
        listing = self.backend.list_tickets(query, mine=view.mine)
        tickets = [Ticket.from_api(t) for t in listing['tickets'] if isinstance(t, dict)]
        pagination = pagination_meta(listing.get('pagination'), page, limit, len(tickets))
        summary, warnings = self._summary(view.mine, filters.get('status'), tickets, pagination, listing.get('summary'))
        rows = []
        for ticket in tickets:
            row = ticket.to_dict()
            row['actions'] = ['view'] + [a for a in self.actions_for(ticket) if a in view.row_actions]
            rows.append(row)
        return build_list_payload(rows, pagination, summary, view=view.to_dict(), filters=filters, warnings=warnings)

    def _summary(self, mine: bool, status_filter: Optional[str], page_tickets: List[Ticket],
                 pagination: Dict[str, int], server_summary: Optional[Dict[str, Any]]):
        if status_filter:
            return summarize(page_tickets, status_filter=status_filter,
                             filtered_total=pagination.get('totalItems')), []
        try:
            unfiltered, expected = self._unfiltered_tickets(mine)
        except Unauthorized:
            raise
        except (BackendError, NotFound) as e:
            logger.warning('Summary fetch failed, falling back to server summary: %s', e.detail)
            return from_server_summary(server_summary), [MSG_SUMMARY_INCOMPLETE]
        if len(unfiltered) < expected:
            logger.warning('Summary tallied %s of %s tickets', len(unfiltered), expected)
            return summarize(unfiltered), [MSG_SUMMARY_INCOMPLETE]
        return summarize(unfiltered), []

    def _unfiltered_tickets(self, mine: bool) -> Tuple[List[Any], int]:
        """Walk every page of the unfiltered list; returns the rows and the backend's totalItems."""
        rows: List[Any] = []
        page = 1
        while True:
            listing = self.backend.list_tickets({'page': page, 'limit': self.summary_fetch_limit}, mine=mine)
            batch = listing['tickets']
            rows.extend(batch)
            meta = pagination_meta(listing.get('pagination'), page, self.summary_fetch_limit, len(batch))
            if not batch or page >= meta['totalPages']:
                return rows, meta['totalItems']
            page += 1


__all__ = ['TicketService', 'FILTER_SPECS']
