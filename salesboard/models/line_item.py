"""Line Item model."""
import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salesboard.database import Base


class LineItem(Base):
    """Line item of an order. Amounts are stored in cents."""

    __tablename__ = 'line_items'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    square_line_item_uid = Column('squareLineItemUid', String, nullable=False, unique=True)
    order_id = Column('orderId', String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    item_id = Column('itemId', String(36), ForeignKey('items.id', ondelete='SET NULL'), nullable=True, index=True)
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price_amount = Column('unitPriceAmount', Integer, nullable=False)
    total_price_amount = Column('totalPriceAmount', Integer, nullable=False)
    currency = Column(String, nullable=False)
    tax_amount = Column('taxAmount', Integer, nullable=False, default=0)
    discount_amount = Column('discountAmount', Integer, nullable=False, default=0)
    variations = Column(String, nullable=True)
    category = Column(String, nullable=True)
    created_at = Column('createdAt', DateTime, nullable=False, server_default=func.now())
    updated_at = Column('updatedAt', DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    order = relationship('Order', back_populates='line_items')
    item = relationship('Item', back_populates='line_items')

    def __repr__(self):
        return f"<LineItem(name='{self.name}', quantity={self.quantity})>"
