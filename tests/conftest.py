import pytest
from datetime import datetime, timedelta

from app import create_app
from app.database import create_all, drop_all, get_session
from app.models import Customer, Location, Ticket, TicketStatus, Attachment


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function')
def session(app):
    """Fresh schema and database session for each test."""
    create_all()
    session = get_session()
    yield session
    session.rollback()
    session.remove()
    drop_all()


@pytest.fixture(scope='function')
def client(app, session):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_customer(session):
    """Factory for persisted customers."""
    def _make(name='Maria Lopez', phone='', email='', locations=(), **kwargs):
        customer = Customer(name=name, phone=phone, email=email, **kwargs)
        for loc_name in locations:
            customer.locations.append(Location(name=loc_name, latitude=37.33, longitude=-122.0))
        session.add(customer)
        session.commit()
        return customer
    return _make


@pytest.fixture
def make_ticket(session):
    """Factory for persisted tickets."""
    counter = {'n': 0}

    def _make(customer, service_name='Marketing Visit', status=TicketStatus.PENDING,
              location_name='', created_at=None, attachments=()):
        counter['n'] += 1
        ticket = Ticket(
            customer=customer,
            service_name=service_name,
            location_name=location_name,
            status=status,
            closed_at=datetime(2025, 8, 20) if status == TicketStatus.DONE else None,
            created_at=created_at or datetime(2025, 8, 18) + timedelta(minutes=counter['n']),
        )
        for name in attachments:
            ticket.attachments.append(Attachment(file_name=name, file_type='pdf', file_data=b'%PDF-1.4'))
        session.add(ticket)
        session.commit()
        return ticket
    return _make
