"""
Unit tests for list search and sectioning.
"""

import random
from datetime import datetime, timedelta

from app.models import Customer, Ticket, TicketStatus
from app.services.search_service import (
    normalize_query, filter_tickets, filter_customers, filter_customer_tickets
)
from app.services.grouping_service import (
    bucket_tickets_by_status, customer_section_key, group_customers_alphabetically
)


def _customer(name, phone='', email=''):
    return Customer(name=name, phone=phone, email=email)


def _ticket(service, customer=None, location='', status=TicketStatus.PENDING, created_at=None):
    return Ticket(
        service_name=service,
        location_name=location,
        customer=customer or _customer('Someone'),
        status=status,
        created_at=created_at or datetime(2025, 8, 18),
    )


class TestSearch:
    """Tests for free-text filtering."""

    def test_normalize_query(self):
        assert normalize_query('  MaR \n') == 'mar'
        assert normalize_query(None) == ''

    def test_substring_match_is_case_insensitive(self):
        visit = _ticket('Marketing Visit')
        other = _ticket('Plumbing')
        maria = _customer('Maria Lopez')
        bob = _customer('bob')

        assert filter_tickets([visit, other], 'mar') == [visit]
        assert filter_customers([maria, bob], 'MAR') == [maria]

    def test_empty_query_returns_everything_in_order(self):
        tickets = [_ticket('B'), _ticket('A')]
        customers = [_customer('z'), _customer('a')]

        assert filter_tickets(tickets, '') == tickets
        assert filter_tickets(tickets, '   ') == tickets
        assert filter_customers(customers, None) == customers

    def test_ticket_matches_location_and_customer_name(self):
        acme = _customer('Acme Corp')
        by_location = _ticket('Repair', location='Warehouse 9')
        by_customer = _ticket('Install', customer=acme)

        assert filter_tickets([by_location, by_customer], 'warehouse') == [by_location]
        assert filter_tickets([by_location, by_customer], 'acme') == [by_customer]

    def test_customer_matches_phone_and_email(self):
        phone = _customer('A', phone='555-0101')
        email = _customer('B', email='team@example.com')

        assert filter_customers([phone, email], '0101') == [phone]
        assert filter_customers([phone, email], 'EXAMPLE.com') == [email]

    def test_customer_ticket_search_includes_status_and_sorts_newest_first(self):
        customer = _customer('Maria Lopez')
        older = _ticket('Visit', customer=customer, status=TicketStatus.DONE,
                        created_at=datetime(2025, 8, 1))
        newer = _ticket('Visit again', customer=customer, status=TicketStatus.PENDING,
                        created_at=datetime(2025, 8, 2))

        assert filter_customer_tickets(customer, '') == [newer, older]
        assert filter_customer_tickets(customer, 'done') == [older]


class TestCustomerSections:
    """Tests for the alphabetical index."""

    def test_grouping_is_deterministic(self):
        customers = [_customer('bob'), _customer('Alice'), _customer('amy')]
        sections = group_customers_alphabetically(customers)

        assert [s.title for s in sections] == ['A', 'B']
        assert [c.name for c in sections[0].items] == ['Alice', 'amy']
        assert [c.name for c in sections[1].items] == ['bob']

    def test_empty_name_falls_back_to_hash(self):
        assert customer_section_key(_customer('')) == '#'
        assert customer_section_key(_customer('   ')) == '#'
        assert customer_section_key(_customer('  zed')) == 'Z'

    def test_hash_section_sorts_before_letters(self):
        sections = group_customers_alphabetically([_customer('carl'), _customer('')])
        assert [s.title for s in sections] == ['#', 'C']

    def test_no_customers_no_sections(self):
        assert group_customers_alphabetically([]) == []


class TestStatusBuckets:
    """Tests for the fixed-order ticket buckets."""

    def test_fixed_order_with_empty_buckets(self):
        sections = bucket_tickets_by_status([])

        assert [s.title for s in sections] == ['In Progress', 'Pending', 'Done']
        assert all(len(s) == 0 for s in sections)

    def test_buckets_partition_tickets(self):
        rng = random.Random(7)
        base = datetime(2025, 8, 18)
        tickets = [
            _ticket(f'T{i}', status=rng.choice(list(TicketStatus)), created_at=base + timedelta(hours=i))
            for i in range(30)
        ]
        rng.shuffle(tickets)

        sections = bucket_tickets_by_status(tickets)
        bucketed = [t for s in sections for t in s.items]

        assert [s.key for s in sections] == ['in_progress', 'pending', 'done']
        assert len(bucketed) == len(tickets)
        assert {id(t) for t in bucketed} == {id(t) for t in tickets}
        for section in sections:
            assert all(t.status.value == section.key for t in section.items)

    def test_bucket_sorted_newest_first(self):
        old = _ticket('old', created_at=datetime(2025, 1, 1))
        new = _ticket('new', created_at=datetime(2025, 6, 1))

        pending = bucket_tickets_by_status([old, new])[1]
        assert pending.items == [new, old]
