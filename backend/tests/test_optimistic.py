import pytest
from helpdesk.errors import BackendError, CommentError, NotFound, TransitionError, Unauthorized
from helpdesk.models.ticket import Ticket
from helpdesk.services.optimistic import OptimisticUpdate


def test_commit_keeps_new_values():
    ticket = Ticket(id='1', status='New')
    update = OptimisticUpdate(ticket, status='Processing')
    assert update.run(lambda: {'ok': True}) == {'ok': True}
    assert ticket.status == 'Processing'
    assert update.committed


def test_failure_rolls_back_and_wraps():
    ticket = Ticket(id='1', status='New', assigned_to_id='20')

    def boom():
        assert ticket.status == 'Processing'
        raise BackendError('down', status_code=503)

    with pytest.raises(TransitionError) as exc:
        OptimisticUpdate(ticket, status='Processing', assigned_to_id='21').run(boom)
    assert exc.value.status_code == 503
    assert ticket.status == 'New'
    assert ticket.assigned_to_id == '20'


def test_custom_error_class():
    ticket = Ticket(id='1')

    def boom():
        raise BackendError('down')

    with pytest.raises(CommentError):
        OptimisticUpdate(ticket, error_cls=CommentError, status='Processing').run(boom)


def test_unauthorized_rolls_back_and_passes_through():
    ticket = Ticket(id='1', status='Approved')

    def expired():
        raise Unauthorized('expired')

    with pytest.raises(Unauthorized):
        OptimisticUpdate(ticket, status='Processing').run(expired)
    assert ticket.status == 'Approved'


def test_not_found_rolls_back_and_wraps():
    ticket = Ticket(id='1', status='Rejected')

    def gone():
        raise NotFound('no such route')

    with pytest.raises(TransitionError) as exc:
        OptimisticUpdate(ticket, status='Closed').run(gone)
    assert exc.value.status_code == 404
    assert ticket.status == 'Rejected'
