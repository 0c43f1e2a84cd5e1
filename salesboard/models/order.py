"""Order model."""
import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salesboard.database import Base


class OrderState:
    """Order states reported by the POS provider."""
    OPEN = 'OPEN'
    COMPLETED = 'COMPLETED'
    CANCELED = 'CANCELED'


class Order(Base):
    """Order (sale) at a location. Amounts are stored in cents."""

    __tablename__ = 'orders'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    square_order_id = Column('squareOrderId', String, nullable=False, unique=True)
    location_id = Column(
        'locationId', String,
        ForeignKey('locations.squareLocationId', ondelete='RESTRICT', onupdate='CASCADE'),
        nullable=False, index=True
    )
    date = Column(DateTime, nullable=False, index=True)
    state = Column(String, nullable=False)
    total_amount = Column('totalAmount', Integer, nullable=False)
    currency = Column(String, nullable=False)
    version = Column(Integer, nullable=True)
    source = Column(String, nullable=True)
    created_at = Column('createdAt', DateTime, nullable=False, server_default=func.now())
    updated_at = Column('updatedAt', DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    location = relationship('Location', back_populates='orders')
    line_items = relationship('LineItem', back_populates='order', cascade='all, delete-orphan')

    @property
    def total_dollars(self):
        """Total amount converted from cents."""
        return (self.total_amount or 0) / 100.0

    def __repr__(self):
        return f"<Order(id='{self.id}', total_amount={self.total_amount}, state='{self.state}')>"
