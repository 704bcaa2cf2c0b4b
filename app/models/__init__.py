"""Models package - exports all SQLAlchemy models."""
from app.models.customer import Customer, UNNAMED_CUSTOMER
from app.models.location import Location
from app.models.ticket import Ticket, TicketStatus, UNTITLED_SERVICE
from app.models.attachment import Attachment, IMAGE_TYPE

__all__ = [
    'Customer', 'UNNAMED_CUSTOMER',
    'Location',
    'Ticket', 'TicketStatus', 'UNTITLED_SERVICE',
    'Attachment', 'IMAGE_TYPE',
]
