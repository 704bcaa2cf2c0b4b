"""Sectioning of customer and ticket lists.

Both groupings are pure functions of the (already filtered) collection and
hold no state; list views recompute them on every request.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List

from app.models import Customer, Ticket, TicketStatus

FALLBACK_SECTION = '#'

# Fixed display priority, not alphabetical
STATUS_BUCKET_ORDER = (
    TicketStatus.IN_PROGRESS,
    TicketStatus.PENDING,
    TicketStatus.DONE,
)


@dataclass
class Section:
    """Titled group of items in a list view."""
    title: str
    items: List[Any] = field(default_factory=list)
    key: str = ''

    def __len__(self):
        return len(self.items)


def customer_section_key(customer: Customer) -> str:
    """Upper-cased first character of the trimmed name, '#' if empty."""
    name = (customer.name or '').strip()
    if not name:
        return FALLBACK_SECTION
    return name[0].upper()


def _customer_sort_key(customer: Customer):
    return ((customer.name or '').lower(), customer.id or 0)


def group_customers_alphabetically(customers: Iterable[Customer]) -> List[Section]:
    """Alphabetical index: sections sorted by key, customers by name (case-insensitive)."""
    buckets: Dict[str, List[Customer]] = {}
    for customer in customers:
        buckets.setdefault(customer_section_key(customer), []).append(customer)

    return [
        Section(title=key, key=key, items=sorted(buckets[key], key=_customer_sort_key))
        for key in sorted(buckets)
    ]


def _ticket_sort_key(ticket: Ticket):
    return (ticket.created_at or datetime.min, ticket.id or 0)


def bucket_tickets_by_status(tickets: Iterable[Ticket]) -> List[Section]:
    """
    Partition tickets into In Progress / Pending / Done.

    All three sections are always returned, in that order, even when
    empty. Within a bucket tickets are newest first.
    """
    buckets: Dict[TicketStatus, List[Ticket]] = {status: [] for status in STATUS_BUCKET_ORDER}
    for ticket in tickets:
        buckets[ticket.status or TicketStatus.PENDING].append(ticket)

    return [
        Section(
            title=status.label,
            key=status.value,
            items=sorted(buckets[status], key=_ticket_sort_key, reverse=True)
        )
        for status in STATUS_BUCKET_ORDER
    ]
