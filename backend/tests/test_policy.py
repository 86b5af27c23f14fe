import pytest
from helpdesk.errors import Forbidden, InvalidTransition
from helpdesk.models.ticket import Comment, Ticket
from helpdesk.services import policy, workflow


def _ticket(status, comments=0, **kw):
    return Ticket(id='t1', status=status, comments=[Comment(text=f'c{n}') for n in range(comments)], **kw)


def test_only_department_head_approves():
    for role in ('ticket_creator', 'it_team', 'auditor', None):
        assert not policy.can_transition(role, Ticket.STATUS_PENDING_APPROVAL, workflow.EVENT_APPROVE)
    assert policy.can_transition('department_head', Ticket.STATUS_PENDING_APPROVAL, workflow.EVENT_APPROVE)
    assert policy.can_transition('3', Ticket.STATUS_PENDING_APPROVAL, workflow.EVENT_REJECT)


def test_it_team_approve_is_forbidden_not_a_state_error():
    ticket = _ticket(Ticket.STATUS_PENDING_APPROVAL)
    with pytest.raises(Forbidden):
        policy.assert_can_transition('it_team', ticket.status, workflow.EVENT_APPROVE)
    assert ticket.status == Ticket.STATUS_PENDING_APPROVAL


def test_it_team_completion_needs_a_comment():
    assert not policy.can_transition('it_team', Ticket.STATUS_PROCESSING, workflow.EVENT_COMPLETE, comment_count=0)
    assert policy.can_transition('it_team', Ticket.STATUS_PROCESSING, workflow.EVENT_COMPLETE, comment_count=1)
    with pytest.raises(InvalidTransition):
        policy.assert_can_transition('it_team', Ticket.STATUS_PROCESSING, workflow.EVENT_COMPLETE, 0)


def test_assignee_may_complete_own_ticket():
    assert not policy.can_transition('ticket_creator', Ticket.STATUS_PROCESSING, workflow.EVENT_COMPLETE, 1)
    assert policy.can_transition('ticket_creator', Ticket.STATUS_PROCESSING, workflow.EVENT_COMPLETE, 1,
                                 is_assignee=True)


def test_comment_locked_statuses():
    for status in (Ticket.STATUS_COMPLETED, Ticket.STATUS_PENDING_APPROVAL, Ticket.STATUS_REJECTED, Ticket.STATUS_CLOSED):
        assert not policy.can_comment('it_team', status)
        with pytest.raises(InvalidTransition):
            policy.assert_can_comment('it_team', status)
    assert policy.can_comment('ticket_creator', Ticket.STATUS_NEW)
    assert not policy.can_comment('auditor', Ticket.STATUS_NEW)
    with pytest.raises(Forbidden):
        policy.assert_can_comment('auditor', Ticket.STATUS_NEW)


def test_rejected_ticket_offers_close_only():
    ticket = _ticket(Ticket.STATUS_REJECTED)
    actions = policy.available_actions('department_head', ticket, actor_id='30')
    assert [a for a in actions if a in workflow.ALL_EVENTS] == [workflow.EVENT_CLOSE]
    assert not policy.can_comment('department_head', ticket.status)


def test_available_actions_for_new_ticket():
    ticket = _ticket(Ticket.STATUS_NEW)
    assert policy.available_actions('it_team', ticket) == [workflow.EVENT_START, 'assign']
    assert policy.available_actions('ticket_creator', ticket) == []
    needs = _ticket(Ticket.STATUS_NEW, category_name='Change Management')
    assert policy.available_actions('it_team', needs) == [workflow.EVENT_SUBMIT_APPROVAL, 'assign']
    assert policy.available_actions('ticket_creator', needs) == [workflow.EVENT_SUBMIT_APPROVAL]


def test_unknown_role_has_no_mutating_actions():
    ticket = _ticket(Ticket.STATUS_PROCESSING, comments=2)
    assert policy.available_actions('auditor', ticket) == []
    assert policy.can_view('auditor')
    assert not policy.can_mutate('auditor')
    assert policy.can_mutate('auditor', is_assignee=True)


def test_assign_rules():
    assert policy.can_assign('it_team', Ticket.STATUS_NEW)
    assert policy.can_assign('department_head', Ticket.STATUS_PENDING_APPROVAL)
    assert not policy.can_assign('ticket_creator', Ticket.STATUS_NEW)
    assert not policy.can_assign('it_team', Ticket.STATUS_COMPLETED)


def test_approved_ticket_cannot_be_resubmitted():
    ticket = _ticket(Ticket.STATUS_APPROVED, category_name='Change Management')
    assert not policy.can_transition('it_team', ticket.status, workflow.EVENT_SUBMIT_APPROVAL, requires_approval=True)
    assert policy.available_actions('it_team', ticket) == [workflow.EVENT_START, 'assign']
