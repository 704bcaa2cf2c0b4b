"""Location model."""
from sqlalchemy import Column, BigInteger, String, Float, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, IdType


class Location(Base):
    """Named place saved for a customer (picked from the geocoder)."""

    __tablename__ = 'location'

    id = Column(IdType, primary_key=True, autoincrement=True)
    customer_id = Column(BigInteger, ForeignKey('customer.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False, default='')
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Relationships
    customer = relationship('Customer', back_populates='locations')

    @property
    def has_coordinates(self):
        return self.latitude is not None and self.longitude is not None

    def __repr__(self):
        return f"<Location(id={self.id}, name='{self.name}')>"
