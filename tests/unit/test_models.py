"""
Unit tests for SQLAlchemy models.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from app.models import Attachment


class TestAttachmentModel:
    """Tests for Attachment ownership."""

    def test_attachment_without_owner_is_rejected(self, session):
        """An attachment must belong to a customer or a ticket."""
        session.add(Attachment(file_name='x.pdf', file_type='pdf', file_data=b'1'))

        with pytest.raises(IntegrityError):
            session.commit()

    def test_attachment_with_two_owners_is_rejected(self, session, make_customer, make_ticket):
        """An attachment cannot belong to both a customer and a ticket."""
        customer = make_customer()
        ticket = make_ticket(customer)
        session.add(Attachment(
            customer_id=customer.id,
            ticket_id=ticket.id,
            file_name='x.pdf',
            file_type='pdf',
            file_data=b'1'
        ))

        with pytest.raises(IntegrityError):
            session.commit()

    def test_attachment_with_one_owner(self, session, make_customer):
        customer = make_customer()
        attachment = Attachment(customer_id=customer.id, file_name='x.pdf', file_type='pdf', file_data=b'1')
        session.add(attachment)
        session.commit()

        assert attachment.id is not None
        assert attachment.ticket_id is None
