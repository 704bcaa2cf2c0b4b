"""Attachment model (file blob owned by a customer or a ticket)."""
import mimetypes
from datetime import datetime

from sqlalchemy import Column, BigInteger, String, LargeBinary, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.database import Base, IdType

IMAGE_TYPE = 'image'


class Attachment(Base):
    """
    Attachment.

    Exactly one of customer_id / ticket_id is set once the attachment is
    saved with its owner. `file_type` is a free-text tag: "image" for
    photos, otherwise the file extension.
    """

    __tablename__ = 'attachment'
    __table_args__ = (
        CheckConstraint('(customer_id IS NULL) != (ticket_id IS NULL)', name='ck_attachment_one_owner'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    customer_id = Column(BigInteger, ForeignKey('customer.id', ondelete='CASCADE'), nullable=True, index=True)
    ticket_id = Column(BigInteger, ForeignKey('ticket.id', ondelete='CASCADE'), nullable=True, index=True)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(50), nullable=False, default='')
    file_data = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Relationships
    customer = relationship('Customer', back_populates='attachments')
    ticket = relationship('Ticket', back_populates='attachments')

    @property
    def is_image(self):
        return self.file_type == IMAGE_TYPE

    @property
    def size(self):
        return len(self.file_data or b'')

    @property
    def content_type(self):
        """Best-effort MIME type used when previewing the blob."""
        guessed = mimetypes.guess_type(self.file_name or '')[0]
        if guessed:
            return guessed
        if self.is_image:
            return 'image/jpeg'
        return 'application/octet-stream'

    def __repr__(self):
        return f"<Attachment(id={self.id}, file_name='{self.file_name}', file_type='{self.file_type}')>"
