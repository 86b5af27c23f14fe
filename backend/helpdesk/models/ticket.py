from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _ref_id(value: Any) -> Optional[str]:
    """Accept either a bare id or a nested ``{id, name}`` object from the backend."""
    if value is None or value == '':
        return None
    if isinstance(value, dict):
        inner = value.get('id', value.get('_id'))
        return str(inner) if inner is not None else None
    return str(value)


def _ref_name(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get('name') or value.get('fullName')
    return None


def _count(value: Any) -> int:
    """Non-negative integer from a backend number; anything unparseable counts as 0."""
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


@dataclass
class Comment:
    text: str
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    created_at: Optional[str] = None
    id: Optional[str] = None

    MAX_LENGTH = 1000

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> 'Comment':
        author = raw.get('author') or raw.get('user')
        return cls(
            id=_ref_id(raw.get('id')),
            text=raw.get('comment') or raw.get('text') or '',
            author_id=_ref_id(author),
            author_name=_ref_name(author) or raw.get('authorName'),
            created_at=raw.get('createdAt'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'comment': self.text,
            'author': {'id': self.author_id, 'name': self.author_name},
            'createdAt': self.created_at,
        }


@dataclass
class Attachment:
    id: str
    original_name: str
    size: int = 0
    storage_ref: Optional[str] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> 'Attachment':
        return cls(
            id=_ref_id(raw.get('id')) or '',
            original_name=raw.get('originalName') or raw.get('filename') or 'attachment',
            size=_count(raw.get('size')),
            storage_ref=raw.get('path') or raw.get('storageRef'),
        )


@dataclass
class Ticket:
    # Status constants
    STATUS_NEW = 'New'
    STATUS_PENDING_APPROVAL = 'PendingApproval'
    STATUS_APPROVED = 'Approved'
    STATUS_REJECTED = 'Rejected'
    STATUS_PROCESSING = 'Processing'
    STATUS_COMPLETED = 'Completed'
    STATUS_CLOSED = 'Closed'
    ALL_STATUSES = (
        STATUS_NEW, STATUS_PENDING_APPROVAL, STATUS_APPROVED, STATUS_REJECTED,
        STATUS_PROCESSING, STATUS_COMPLETED, STATUS_CLOSED,
    )
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CLOSED)

    SEVERITY_LEVELS = ('Low', 'Medium', 'High', 'Critical')
    DEFAULT_SEVERITY = 'Medium'
    DESCRIPTION_MAX_LENGTH = 2000

    id: str
    ticket_number: Optional[str] = None
    status: str = STATUS_NEW
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    issue_type_id: Optional[str] = None
    request_type_id: Optional[str] = None
    severity: str = DEFAULT_SEVERITY
    assigned_to_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    requester_id: Optional[str] = None
    full_name: Optional[str] = None
    contact_number: Optional[str] = None
    department: Optional[str] = None
    company: Optional[str] = None
    description: str = ''
    requires_approval: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    assigned_at: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    reported_comment_count: Optional[int] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> 'Ticket':
        from helpdesk.services.workflow import parse_status  # avoid import cycle
        category = raw.get('category')
        assigned = raw.get('assignedTo')
        requester = raw.get('createdBy') or raw.get('requester')
        return cls(
            id=_ref_id(raw.get('id', raw.get('_id'))) or '',
            ticket_number=raw.get('ticketNumber'),
            status=parse_status(raw.get('status')) or raw.get('status') or cls.STATUS_NEW,
            category_id=_ref_id(category),
            category_name=_ref_name(category),
            issue_type_id=_ref_id(raw.get('issueType')),
            request_type_id=_ref_id(raw.get('requestType')),
            severity=raw.get('severityLevel') or raw.get('priority') or cls.DEFAULT_SEVERITY,
            assigned_to_id=_ref_id(assigned),
            assigned_to_name=_ref_name(assigned),
            requester_id=_ref_id(requester),
            full_name=raw.get('fullName'),
            contact_number=raw.get('contactNumber'),
            department=_ref_name(raw.get('department')) or _ref_id(raw.get('department')),
            company=_ref_name(raw.get('company')) or _ref_id(raw.get('company')),
            description=raw.get('description') or '',
            requires_approval=bool(
                raw.get('requiresApproval')
                or (isinstance(category, dict) and category.get('requiresApproval'))
                or (isinstance(raw.get('requestType'), dict) and raw['requestType'].get('requiresApproval'))
            ),
            created_at=raw.get('createdAt'),
            updated_at=raw.get('updatedAt'),
            assigned_at=raw.get('assignedAt'),
            attachments=[Attachment.from_api(a) for a in raw.get('attachments') or []],
            comments=[Comment.from_api(c) for c in raw.get('comments') or []],
            reported_comment_count=raw.get('commentCount'),
        )

    @property
    def comment_count(self) -> int:
        """List payloads carry a count instead of the comment thread."""
        return max(len(self.comments), _count(self.reported_comment_count))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'ticketNumber': self.ticket_number,
            'status': self.status,
            'category': {'id': self.category_id, 'name': self.category_name},
            'issueType': self.issue_type_id,
            'requestType': self.request_type_id,
            'severityLevel': self.severity,
            'assignedTo': {'id': self.assigned_to_id, 'name': self.assigned_to_name} if self.assigned_to_id else None,
            'fullName': self.full_name,
            'contactNumber': self.contact_number,
            'department': self.department,
            'company': self.company,
            'description': self.description,
            'requiresApproval': self.requires_approval,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'assignedAt': self.assigned_at,
            'commentCount': self.comment_count,
        }

# Status flow: New -> Processing -> Completed, with the Change Management detour
# New/Processing -> PendingApproval -> Approved -> Processing or Rejected -> Closed.
