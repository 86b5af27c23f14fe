"""Category-scoped lookup cascade and the ticket draft it feeds.

A category owns its issue types, request types and eligible assignees. The
draft keeps issue type and request type mutually exclusive on every change and
drops all three category-scoped selections when the category changes.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from helpdesk.errors import BackendError, LookupLoadError, Unauthorized, ValidationError
from helpdesk.models.reference import LookupOption, User
from helpdesk.models.ticket import Ticket
from helpdesk.utils.validation import validate_choice, validate_length, validate_required

logger = logging.getLogger(__name__)

FIELD_ASSIGNEES = 'assignees'
FIELD_ISSUE_TYPES = 'issueTypes'
FIELD_REQUEST_TYPES = 'requestTypes'

MSG_TYPE_MISSING = 'Select either an issue type or a request type'
MSG_TYPE_BOTH = 'Choose an issue type or a request type, not both'


@dataclass
class CascadeOptions:
    category_id: Optional[str]
    assignees: List[User] = field(default_factory=list)
    issue_types: List[LookupOption] = field(default_factory=list)
    request_types: List[LookupOption] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def disabled(self) -> List[str]:
        """Dependent fields whose lookup failed; the form offers a retry for them."""
        return sorted(self.errors)

    def loaded(self, name: str) -> bool:
        return bool(self.category_id) and name not in self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'categoryId': self.category_id,
            'assignees': [u.to_dict() for u in self.assignees],
            'issueTypes': [o.to_dict() for o in self.issue_types],
            'requestTypes': [o.to_dict() for o in self.request_types],
            'errors': self.errors,
            'disabled': self.disabled,
            'retry': bool(self.errors),
        }


class CategoryCascade:
    """Resolves category-scoped option lists through the backend connector."""

    def __init__(self, backend):
        self.backend = backend

    def _fetch(self, label: str, loader: Callable[[str], List[Any]], category_id: Optional[str]) -> List[Any]:
        if not category_id:
            return []
        try:
            return loader(category_id)
        except Unauthorized:
            raise
        except BackendError as e:
            logger.warning('Failed to load %s for category %s: %s', label, category_id, e.detail)
            raise LookupLoadError(f'Failed to load {label} for selected category') from e

    def resolve_assignees(self, category_id: Optional[str]) -> List[User]:
        rows = self._fetch('users', self.backend.get_users_by_category, category_id)
        return [User.from_api(r) for r in rows if isinstance(r, dict)]

    def resolve_issue_types(self, category_id: Optional[str]) -> List[LookupOption]:
        rows = self._fetch('issue types', self.backend.get_issue_types, category_id)
        return [LookupOption.from_api(r) for r in rows]

    def resolve_request_types(self, category_id: Optional[str]) -> List[LookupOption]:
        rows = self._fetch('request types', self.backend.get_request_types, category_id)
        return [LookupOption.from_api(r) for r in rows]

    def resolve(self, category_id: Optional[str]) -> CascadeOptions:
        """Resolve all three lists; a failing list is disabled, the others stay usable."""
        options = CascadeOptions(category_id=category_id or None)
        for name, resolver, attr in (
            (FIELD_ASSIGNEES, self.resolve_assignees, 'assignees'),
            (FIELD_ISSUE_TYPES, self.resolve_issue_types, 'issue_types'),
            (FIELD_REQUEST_TYPES, self.resolve_request_types, 'request_types'),
        ):
            try:
                setattr(options, attr, resolver(category_id))
            except LookupLoadError as e:
                options.errors[name] = e.detail
        return options


def _clean(value: Any) -> str:
    return '' if value is None else str(value).strip()


@dataclass
class TicketDraft:
    full_name: str = ''
    contact_number: str = ''
    department: str = ''
    company: str = ''
    category_id: str = ''
    assigned_to: str = ''
    issue_type: str = ''
    request_type: str = ''
    severity: str = Ticket.DEFAULT_SEVERITY
    description: str = ''

    # wire name -> attribute
    FIELDS = {
        'fullName': 'full_name',
        'contactNumber': 'contact_number',
        'department': 'department',
        'company': 'company',
        'category': 'category_id',
        'assignedTo': 'assigned_to',
        'issueType': 'issue_type',
        'requestType': 'request_type',
        'severityLevel': 'severity',
        'description': 'description',
    }

    @classmethod
    def from_form(cls, form: Dict[str, Any]) -> 'TicketDraft':
        """Build a draft from submitted values as-is; ``validate`` judges them."""
        values = {attr: _clean(form.get(wire)) for wire, attr in cls.FIELDS.items() if wire in form}
        if not values.get('severity'):
            values.pop('severity', None)
        return cls(**values)

    def apply(self, wire_name: str, value: Any) -> List[str]:
        """Apply one field change; returns the wire names that were cleared as a consequence."""
        attr = self.FIELDS.get(wire_name)
        if attr is None:
            raise ValidationError({wire_name: 'Unknown field'})
        value = _clean(value)
        cleared: List[str] = []
        if attr == 'category_id' and value != self.category_id:
            for dependent in ('assignedTo', 'issueType', 'requestType'):
                if getattr(self, self.FIELDS[dependent]):
                    cleared.append(dependent)
                setattr(self, self.FIELDS[dependent], '')
        elif attr == 'issue_type' and value:
            if self.request_type:
                cleared.append('requestType')
            self.request_type = ''
        elif attr == 'request_type' and value:
            if self.issue_type:
                cleared.append('issueType')
            self.issue_type = ''
        setattr(self, attr, value)
        return cleared

    def field_errors(self, options: Optional[CascadeOptions] = None) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for wire, label in (('fullName', 'Full name'), ('department', 'Department'),
                            ('category', 'Category'), ('assignedTo', 'Assignee')):
            message = validate_required(getattr(self, self.FIELDS[wire]), label)
            if message:
                errors[wire] = message
        if self.issue_type and self.request_type:
            errors['issueType'] = MSG_TYPE_BOTH
            errors['requestType'] = MSG_TYPE_BOTH
        elif not self.issue_type and not self.request_type:
            errors['issueType'] = MSG_TYPE_MISSING
            errors['requestType'] = MSG_TYPE_MISSING
        message = validate_choice(self.severity, Ticket.SEVERITY_LEVELS, 'Severity level')
        if message:
            errors['severityLevel'] = message
        message = validate_length(self.description, Ticket.DESCRIPTION_MAX_LENGTH, 'Description')
        if message:
            errors['description'] = message
        if options is not None and options.category_id == (self.category_id or None):
            for wire, message in self._membership_errors(options).items():
                errors.setdefault(wire, message)
        return errors

    def _membership_errors(self, options: CascadeOptions) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        checks = (
            ('assignedTo', self.assigned_to, FIELD_ASSIGNEES, {u.id for u in options.assignees}),
            ('issueType', self.issue_type, FIELD_ISSUE_TYPES, {o.id for o in options.issue_types}),
            ('requestType', self.request_type, FIELD_REQUEST_TYPES, {o.id for o in options.request_types}),
        )
        for wire, value, list_name, valid in checks:
            if value and options.loaded(list_name) and value not in valid:
                errors.setdefault(wire, 'Selection is not valid for the chosen category')
        return errors

    def validate(self, options: Optional[CascadeOptions] = None):
        errors = self.field_errors(options)
        if errors:
            raise ValidationError(errors, detail='Ticket form has invalid fields')
        return self

    def requires_approval(self, options: Optional[CascadeOptions] = None) -> bool:
        if options is None or not self.request_type:
            return False
        return any(o.id == self.request_type and o.requires_approval for o in options.request_types)

    def to_payload(self) -> Dict[str, Any]:
        payload = {wire: getattr(self, attr) for wire, attr in self.FIELDS.items()}
        # exactly one of the two type keys goes over the wire
        if not payload['issueType']:
            payload.pop('issueType')
        if not payload['requestType']:
            payload.pop('requestType')
        return payload

    def to_dict(self) -> Dict[str, Any]:
        return {wire: getattr(self, attr) for wire, attr in self.FIELDS.items()}


__all__ = ['CascadeOptions', 'CategoryCascade', 'TicketDraft', 'MSG_TYPE_MISSING', 'MSG_TYPE_BOTH']
