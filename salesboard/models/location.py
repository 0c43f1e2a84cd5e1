"""Location model (store / point of sale)."""
import uuid
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salesboard.database import Base


class Location(Base):
    """Location synced from the POS provider."""

    __tablename__ = 'locations'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    square_location_id = Column('squareLocationId', String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    timezone = Column(String, nullable=True)
    currency = Column(String, nullable=True)
    status = Column(String, nullable=True)
    business_hours = Column('businessHours', JSON, nullable=True)
    created_at = Column('createdAt', DateTime, nullable=False, server_default=func.now())
    updated_at = Column('updatedAt', DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Orders reference the POS location id, not the surrogate key
    orders = relationship('Order', back_populates='location')

    def __repr__(self):
        return f"<Location(name='{self.name}', square_location_id='{self.square_location_id}')>"
