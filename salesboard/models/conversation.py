"""Conversation and ChatMessage models."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salesboard.database import Base


class MessageRole:
    """Chat message roles."""
    USER = 'user'
    ASSISTANT = 'assistant'


class Conversation(Base):
    """Conversation owned by an authenticated user."""

    __tablename__ = 'conversations'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    messages = relationship(
        'ChatMessage',
        back_populates='conversation',
        cascade='all, delete-orphan',
        order_by='ChatMessage.created_at'
    )

    def to_dict(self, include_messages=False):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'title': self.title,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_messages:
            data['messages'] = [m.to_dict() for m in self.messages]
        return data

    def __repr__(self):
        return f"<Conversation(id='{self.id}', title='{self.title}')>"


class ChatMessage(Base):
    """Single message within a conversation."""

    __tablename__ = 'chat_messages'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    conversation_id = Column(String(36), ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    # 'metadata' is reserved on declarative classes
    message_metadata = Column('metadata', JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    conversation = relationship('Conversation', back_populates='messages')

    def to_dict(self):
        return {
            'id': self.id,
            'conversationId': self.conversation_id,
            'role': self.role,
            'content': self.content,
            'metadata': self.message_metadata,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ChatMessage(role='{self.role}', conversation_id='{self.conversation_id}')>"
