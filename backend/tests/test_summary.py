from helpdesk.models.ticket import Ticket
from helpdesk.services.summary import summarize, tally, from_server_summary, BUCKETS


def _tickets():
    statuses = ['Processing'] * 3 + ['New'] * 4 + ['Completed', 'Rejected', 'PendingApproval']
    return [Ticket(id=str(n), status=s) for n, s in enumerate(statuses)]


def test_status_filter_short_circuits_to_filtered_count():
    tickets = _tickets()
    matching = [t for t in tickets if t.status == 'Processing']
    summary = summarize(matching, status_filter='Processing')
    assert summary['processing'] == 3
    assert summary['total'] == 3
    assert summary['new'] == 0
    assert summary['completed'] == 0


def test_status_filter_prefers_server_filtered_total():
    summary = summarize([], status_filter='in progress', filtered_total=12)
    assert summary['processing'] == 12
    assert summary['total'] == 12


def test_unfiltered_counts_every_bucket():
    summary = summarize(_tickets())
    assert summary == {
        'new': 4, 'pendingApproval': 1, 'approved': 0, 'rejected': 1,
        'processing': 3, 'completed': 1, 'closed': 0, 'total': 10,
    }


def test_total_is_bucket_sum_even_when_server_disagrees():
    summary = from_server_summary({'new': 2, 'processing': 5, 'completed': 1, 'total': 99, 'bogus': 7})
    assert summary['total'] == 8
    assert summary['total'] == sum(summary[b] for b in BUCKETS.values())


def test_tickets_win_over_server_summary():
    summary = summarize(_tickets()[:2], server_summary={'processing': 40, 'total': 40})
    assert summary['processing'] == 2
    assert summary['total'] == 2


def test_server_summary_used_without_tickets():
    summary = summarize(None, server_summary={'Pending Approval': '3', 'closed': -1})
    assert summary['pendingApproval'] == 3
    assert summary['closed'] == 0
    assert summary['total'] == 3


def test_tally_accepts_dicts_and_skips_unknown_statuses():
    summary = tally([{'status': 'New'}, {'status': {'name': 'Closed'}}, 'resolved', {'status': 'Archived'}])
    assert summary['new'] == 1
    assert summary['closed'] == 1
    assert summary['completed'] == 1
    assert summary['total'] == 3
