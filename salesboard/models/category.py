"""Category model."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salesboard.database import Base


class Category(Base):
    """Catalog category."""

    __tablename__ = 'categories'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    square_category_id = Column('squareCategoryId', String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    is_active = Column('isActive', Boolean, nullable=False, default=True)
    created_at = Column('createdAt', DateTime, nullable=False, server_default=func.now())
    updated_at = Column('updatedAt', DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    items = relationship('Item', back_populates='category_ref')

    def __repr__(self):
        return f"<Category(name='{self.name}')>"
