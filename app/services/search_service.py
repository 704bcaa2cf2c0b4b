"""Free-text search over tickets and customers.

Matching is a case-insensitive substring test recomputed over the whole
collection on every call; an empty query disables filtering.
"""
from datetime import datetime
from typing import Iterable, List, Optional

from app.models import Customer, Ticket


def normalize_query(text: Optional[str]) -> str:
    """Strip surrounding whitespace and lower-case the query."""
    return (text or '').strip().lower()


def _contains(value: Optional[str], query: str) -> bool:
    return query in (value or '').lower()


def ticket_matches(ticket: Ticket, query: str) -> bool:
    """Match service name, location name or the owning customer's name."""
    query = normalize_query(query)
    if not query:
        return True
    customer_name = ticket.customer.name if ticket.customer is not None else ''
    return (
        _contains(ticket.service_name, query)
        or _contains(ticket.location_name, query)
        or _contains(customer_name, query)
    )


def customer_matches(customer: Customer, query: str) -> bool:
    """Match name, phone or email."""
    query = normalize_query(query)
    if not query:
        return True
    return (
        _contains(customer.name, query)
        or _contains(customer.phone, query)
        or _contains(customer.email, query)
    )


def filter_tickets(tickets: Iterable[Ticket], query: Optional[str]) -> List[Ticket]:
    query = normalize_query(query)
    if not query:
        return list(tickets)
    return [t for t in tickets if ticket_matches(t, query)]


def filter_customers(customers: Iterable[Customer], query: Optional[str]) -> List[Customer]:
    query = normalize_query(query)
    if not query:
        return list(customers)
    return [c for c in customers if customer_matches(c, query)]


def filter_customer_tickets(customer: Customer, query: Optional[str]) -> List[Ticket]:
    """
    Search within one customer's tickets (customer detail screen).

    Matches service name, location name or status value, newest first.
    """
    ordered = sorted(
        customer.tickets,
        key=lambda t: (t.created_at or datetime.min, t.id or 0),
        reverse=True
    )
    query = normalize_query(query)
    if not query:
        return ordered
    return [
        t for t in ordered
        if _contains(t.service_name, query)
        or _contains(t.location_name, query)
        or _contains(t.status.value if t.status else '', query)
    ]
