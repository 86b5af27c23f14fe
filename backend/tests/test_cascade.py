import pytest
from helpdesk.errors import BackendError, LookupLoadError, Unauthorized, ValidationError
from helpdesk.services.cascade import (
    CategoryCascade, CascadeOptions, TicketDraft, MSG_TYPE_BOTH, MSG_TYPE_MISSING,
)
from helpdesk.models.reference import LookupOption, User


class StubBackend:
    def __init__(self, fail=None):
        self.fail = fail or {}
        self.calls = []

    def _get(self, name, category_id, rows):
        self.calls.append((name, category_id))
        if name in self.fail:
            raise self.fail[name]
        return rows

    def get_users_by_category(self, category_id):
        return self._get('users', category_id, [{'id': '20', 'name': 'Ivy', 'role': '2'}])

    def get_issue_types(self, category_id):
        return self._get('issue', category_id, [{'id': 'i1', 'name': 'Slow'}])

    def get_request_types(self, category_id):
        return self._get('request', category_id, [{'id': 'r1', 'name': 'VPN', 'requiresApproval': True}])


def test_empty_category_resolves_to_empty_lists_without_network():
    backend = StubBackend()
    cascade = CategoryCascade(backend)
    assert cascade.resolve_assignees('') == []
    assert cascade.resolve_issue_types(None) == []
    assert cascade.resolve_request_types('') == []
    assert backend.calls == []


def test_resolve_loads_all_lists():
    options = CategoryCascade(StubBackend()).resolve('c1')
    assert [u.id for u in options.assignees] == ['20']
    assert options.assignees[0].role == 'it_team'
    assert [o.id for o in options.issue_types] == ['i1']
    assert options.request_types[0].requires_approval is True
    assert options.errors == {}


def test_failed_list_is_disabled_others_usable():
    backend = StubBackend(fail={'issue': BackendError('boom')})
    options = CategoryCascade(backend).resolve('c1')
    assert options.disabled == ['issueTypes']
    assert options.to_dict()['retry'] is True
    assert options.assignees and options.request_types
    with pytest.raises(LookupLoadError):
        CategoryCascade(backend).resolve_issue_types('c1')


def test_unauthorized_passes_through():
    backend = StubBackend(fail={'users': Unauthorized('expired')})
    with pytest.raises(Unauthorized):
        CategoryCascade(backend).resolve('c1')


@pytest.mark.parametrize('sequence', [
    [('issueType', 'i1'), ('requestType', 'r1')],
    [('requestType', 'r1'), ('issueType', 'i1')],
    [('issueType', 'i1'), ('issueType', ''), ('requestType', 'r1'), ('issueType', 'i2')],
    [('requestType', 'r1'), ('category', 'c2'), ('issueType', 'i3')],
])
def test_issue_and_request_type_never_both_set(sequence):
    draft = TicketDraft(category_id='c1')
    for wire, value in sequence:
        draft.apply(wire, value)
        assert not (draft.issue_type and draft.request_type)


def test_setting_one_type_reports_the_other_cleared():
    draft = TicketDraft(category_id='c1', issue_type='i1')
    assert draft.apply('requestType', 'r1') == ['issueType']
    assert draft.issue_type == '' and draft.request_type == 'r1'


def test_category_change_clears_dependent_fields():
    draft = TicketDraft(category_id='c1', assigned_to='20', issue_type='i1')
    cleared = draft.apply('category', 'c2')
    assert cleared == ['assignedTo', 'issueType']
    assert (draft.assigned_to, draft.issue_type, draft.request_type) == ('', '', '')
    # same category is a no-op for dependents
    draft.assigned_to = '21'
    assert draft.apply('category', 'c2') == []
    assert draft.assigned_to == '21'


def test_unknown_field_rejected():
    with pytest.raises(ValidationError):
        TicketDraft().apply('priority', 'High')


def _valid_form(**over):
    form = {'fullName': 'Pat', 'department': 'Finance', 'category': 'c1', 'assignedTo': '20',
            'issueType': 'i1', 'severityLevel': 'High', 'description': 'VPN drops'}
    form.update(over)
    return form


def test_validation_messages():
    errors = TicketDraft.from_form(_valid_form(issueType='', fullName=' ')).field_errors()
    assert errors['issueType'] == MSG_TYPE_MISSING
    assert errors['requestType'] == MSG_TYPE_MISSING
    assert errors['fullName'] == 'Full name is required'
    errors = TicketDraft.from_form(_valid_form(requestType='r1')).field_errors()
    assert errors['issueType'] == MSG_TYPE_BOTH
    errors = TicketDraft.from_form(_valid_form(severityLevel='Urgent', description='x' * 2001)).field_errors()
    assert 'severityLevel' in errors and 'description' in errors


def test_default_severity():
    assert TicketDraft.from_form(_valid_form(severityLevel='')).severity == 'Medium'


def test_membership_checked_against_loaded_lists():
    options = CascadeOptions(
        category_id='c1',
        assignees=[User(id='20')],
        issue_types=[LookupOption(id='i1', name='Slow')],
        request_types=[],
    )
    draft = TicketDraft.from_form(_valid_form(assignedTo='99'))
    assert draft.field_errors(options) == {'assignedTo': 'Selection is not valid for the chosen category'}
    options.errors['assignees'] = 'Failed to load users for selected category'
    assert draft.field_errors(options) == {}


def test_payload_carries_exactly_one_type():
    payload = TicketDraft.from_form(_valid_form()).validate().to_payload()
    assert payload['issueType'] == 'i1'
    assert 'requestType' not in payload


def test_requires_approval_follows_request_type():
    options = CascadeOptions(category_id='c1', request_types=[LookupOption(id='r1', name='VPN', requires_approval=True)])
    assert TicketDraft.from_form(_valid_form(issueType='', requestType='r1')).requires_approval(options)
    assert not TicketDraft.from_form(_valid_form()).requires_approval(options)
