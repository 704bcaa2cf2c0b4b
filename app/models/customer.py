"""Customer model."""
from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from app.database import Base, IdType

UNNAMED_CUSTOMER = 'Unnamed Customer'


class Customer(Base):
    """
    Customer.

    Owns its locations, attachments and tickets; deleting a customer
    deletes all of them (tickets take their own attachments along).
    """

    __tablename__ = 'customer'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, default='')
    address = Column(Text, nullable=False, default='')
    phone = Column(String(50), nullable=False, default='')
    email = Column(String(255), nullable=False, default='')
    description = Column(Text, nullable=False, default='')
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Relationships
    locations = relationship(
        'Location',
        back_populates='customer',
        cascade='all, delete-orphan',
        order_by='Location.id'
    )
    attachments = relationship(
        'Attachment',
        back_populates='customer',
        cascade='all',
        order_by='Attachment.id'
    )
    tickets = relationship(
        'Ticket',
        back_populates='customer',
        cascade='all, delete-orphan',
        order_by='Ticket.id'
    )

    @property
    def display_name(self):
        """Name shown in lists; empty names get a placeholder."""
        return self.name or UNNAMED_CUSTOMER

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}')>"
