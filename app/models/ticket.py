"""Ticket model and status enum."""
import enum
from datetime import datetime

from sqlalchemy import Column, BigInteger, String, Float, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.database import Base, IdType

UNTITLED_SERVICE = 'Untitled Service'


class TicketStatus(str, enum.Enum):
    """Ticket workflow status."""
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    DONE = 'done'

    @property
    def label(self):
        """Human readable name ("In Progress")."""
        return _STATUS_LABELS[self]

    @classmethod
    def parse(cls, value):
        """
        Parse a status from its value or its label, case-insensitively.

        Raises:
            ValidationError: If the value is not a known status
        """
        if isinstance(value, cls):
            return value
        text = (value or '').strip().lower()
        for status in cls:
            if text in (status.value, status.label.lower(), status.name.lower()):
                return status
        from app.exceptions import ValidationError
        raise ValidationError(f"Unknown ticket status: '{value}'")


_STATUS_LABELS = {
    TicketStatus.PENDING: 'Pending',
    TicketStatus.IN_PROGRESS: 'In Progress',
    TicketStatus.DONE: 'Done',
}


class Ticket(Base):
    """
    Ticket (unit of service work for one customer).

    `closed_at` is set if and only if the status is DONE; status changes
    must go through ticket_status_service.apply_status to keep that true.
    """

    __tablename__ = 'ticket'

    id = Column(IdType, primary_key=True, autoincrement=True)
    customer_id = Column(BigInteger, ForeignKey('customer.id', ondelete='CASCADE'), nullable=False, index=True)
    status = Column(Enum(TicketStatus, name='ticket_status'), nullable=False, default=TicketStatus.PENDING)
    service_name = Column(String(255), nullable=False, default='')
    location_name = Column(String(255), nullable=False, default='')  # denormalized from Location.name
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    closed_at = Column(DateTime, nullable=True)

    # Relationships
    customer = relationship('Customer', back_populates='tickets')
    attachments = relationship(
        'Attachment',
        back_populates='ticket',
        cascade='all',
        order_by='Attachment.id'
    )

    @property
    def display_service_name(self):
        return self.service_name or UNTITLED_SERVICE

    def __repr__(self):
        status = self.status.value if self.status else None
        return f"<Ticket(id={self.id}, service='{self.service_name}', status='{status}')>"
