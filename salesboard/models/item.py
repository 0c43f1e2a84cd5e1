"""Item model."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salesboard.database import Base


class Item(Base):
    """Catalog item sold at one or more locations."""

    __tablename__ = 'items'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    square_item_id = Column('squareItemId', String, nullable=False, unique=True)
    square_catalog_id = Column('squareCatalogId', String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    square_category_id = Column(
        'squareCategoryId', String,
        ForeignKey('categories.squareCategoryId', ondelete='SET NULL', onupdate='CASCADE'),
        nullable=True
    )
    is_active = Column('isActive', Boolean, nullable=False, default=True)
    created_at = Column('createdAt', DateTime, nullable=False, server_default=func.now())
    updated_at = Column('updatedAt', DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    category_ref = relationship('Category', back_populates='items')
    line_items = relationship('LineItem', back_populates='item')

    def __repr__(self):
        return f"<Item(name='{self.name}', category='{self.category}')>"
