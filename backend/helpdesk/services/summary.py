from __future__ import annotations
"""Dashboard tile counters.

The server may send a ``summary`` object alongside list responses, but it is
optional and has been seen to disagree with itself, so counts are recomputed
from tickets whenever a ticket set is available and ``total`` is always the
sum of the buckets.
"""
from typing import Any, Dict, Iterable, Optional
from helpdesk.models.ticket import Ticket
from helpdesk.services.workflow import parse_status

BUCKETS: Dict[str, str] = {
    Ticket.STATUS_NEW: 'new',
    Ticket.STATUS_PENDING_APPROVAL: 'pendingApproval',
    Ticket.STATUS_APPROVED: 'approved',
    Ticket.STATUS_REJECTED: 'rejected',
    Ticket.STATUS_PROCESSING: 'processing',
    Ticket.STATUS_COMPLETED: 'completed',
    Ticket.STATUS_CLOSED: 'closed',
}


def empty_summary() -> Dict[str, int]:
    out = {bucket: 0 for bucket in BUCKETS.values()}
    out['total'] = 0
    return out


def bucket_for(status: Any) -> Optional[str]:
    canonical = parse_status(status)
    return BUCKETS.get(canonical) if canonical else None


def _status_of(ticket: Any) -> Any:
    if isinstance(ticket, Ticket):
        return ticket.status
    if isinstance(ticket, dict):
        return ticket.get('status')
    return ticket


def _finish(counts: Dict[str, int]) -> Dict[str, int]:
    counts['total'] = sum(v for k, v in counts.items() if k != 'total')
    return counts


def tally(tickets: Iterable[Any]) -> Dict[str, int]:
    """Count tickets per bucket; statuses that map to no bucket are skipped."""
    counts = empty_summary()
    for ticket in tickets:
        bucket = bucket_for(_status_of(ticket))
        if bucket:
            counts[bucket] += 1
    return _finish(counts)


def from_server_summary(server_summary: Optional[Dict[str, Any]]) -> Dict[str, int]:
    """Normalize a server summary into buckets, ignoring its own total."""
    counts = empty_summary()
    for key, value in (server_summary or {}).items():
        bucket = bucket_for(key)
        if not bucket:
            continue
        try:
            counts[bucket] += max(0, int(value))
        except (TypeError, ValueError):
            continue
    return _finish(counts)


def summarize(tickets: Optional[Iterable[Any]] = None, server_summary: Optional[Dict[str, Any]] = None,
              status_filter: Optional[str] = None, filtered_total: Optional[int] = None) -> Dict[str, int]:
    """Build dashboard counters.

    With an active ``status_filter`` only that bucket is reported, holding the
    filtered count (``filtered_total`` when the server supplied one, otherwise
    the matching tickets in ``tickets``). Without a filter ``tickets`` must be
    the unfiltered set; ``server_summary`` is only consulted when no tickets
    are available at all.
    """
    if status_filter:
        counts = empty_summary()
        bucket = bucket_for(status_filter)
        if bucket is None:
            return counts
        if filtered_total is not None:
            counts[bucket] = max(0, int(filtered_total))
        else:
            counts[bucket] = sum(1 for t in tickets or [] if bucket_for(_status_of(t)) == bucket)
        return _finish(counts)
    if tickets is not None:
        return tally(tickets)
    return from_server_summary(server_summary)


__all__ = ['BUCKETS', 'empty_summary', 'bucket_for', 'tally', 'from_server_summary', 'summarize']
