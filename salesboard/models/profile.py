"""Profile model - application-side record of an auth provider user."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from salesboard.database import Base


class Profile(Base):
    """Profile keyed by the auth provider's user id."""

    __tablename__ = 'profiles'

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    first_name = Column(String(200), nullable=True)
    last_name = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def full_name(self):
        """First and last name joined, or the email when both are empty."""
        parts = [p for p in (self.first_name, self.last_name) if p]
        return ' '.join(parts) if parts else self.email

    def __repr__(self):
        return f"<Profile(id='{self.id}', email='{self.email}')>"
