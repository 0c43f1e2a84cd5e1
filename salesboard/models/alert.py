"""AlertRule and Notification models."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salesboard.database import Base


class ConditionType:
    """Sales milestones an alert rule can watch."""
    DAILY_SALES = 'daily_sales_threshold'
    ITEM_SALES = 'item_sales_threshold'
    LOCATION_SALES = 'location_sales_threshold'

    ALL = (DAILY_SALES, ITEM_SALES, LOCATION_SALES)


class AlertFrequency:
    ONCE = 'once'
    DAILY = 'daily'
    WEEKLY = 'weekly'

    ALL = (ONCE, DAILY, WEEKLY)


class NotificationStatus:
    UNREAD = 'unread'
    READ = 'read'

    ALL = (UNREAD, READ)


def _utcnow():
    return datetime.now(timezone.utc)


class AlertRule(Base):
    """Milestone alert defined by a user, e.g. daily sales reaching a threshold."""

    __tablename__ = 'alert_rules'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column('userId', String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    condition_type = Column('conditionType', String(50), nullable=False)
    # {"type", "operator", "value", "timeframe", ...}; values in dollars
    condition_data = Column('conditionData', JSON, nullable=False)
    frequency = Column(String(20), nullable=False, default=AlertFrequency.DAILY)
    is_active = Column('isActive', Boolean, nullable=False, default=True)
    last_triggered_at = Column('lastTriggeredAt', DateTime(timezone=True), nullable=True)
    created_at = Column('createdAt', DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column('updatedAt', DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    notifications = relationship(
        'Notification',
        back_populates='alert_rule',
        cascade='all, delete-orphan',
        order_by='Notification.created_at.desc()'
    )

    def to_dict(self, recent_notifications=None):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'name': self.name,
            'description': self.description,
            'conditionType': self.condition_type,
            'conditionData': self.condition_data,
            'frequency': self.frequency,
            'isActive': self.is_active,
            'lastTriggeredAt': self.last_triggered_at.isoformat() if self.last_triggered_at else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if recent_notifications is not None:
            data['notifications'] = [n.to_dict() for n in recent_notifications]
        return data

    def __repr__(self):
        return f"<AlertRule(id='{self.id}', name='{self.name}')>"


class Notification(Base):
    """Message produced when an alert rule fires."""

    __tablename__ = 'notifications'
    __table_args__ = (
        Index('ix_notifications_user_status_created', 'userId', 'status', 'createdAt'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column('userId', String(36), nullable=False)
    alert_rule_id = Column(
        'alertRuleId', String(36),
        ForeignKey('alert_rules.id', ondelete='CASCADE'),
        nullable=True, index=True
    )
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False, default='milestone')
    status = Column(String(20), nullable=False, default=NotificationStatus.UNREAD)
    notification_metadata = Column('metadata', JSON, nullable=True)
    email_sent = Column('emailSent', Boolean, nullable=False, default=False)
    email_sent_at = Column('emailSentAt', DateTime(timezone=True), nullable=True)
    created_at = Column('createdAt', DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column('updatedAt', DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    alert_rule = relationship('AlertRule', back_populates='notifications')

    def to_dict(self, include_rule=False):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'alertRuleId': self.alert_rule_id,
            'title': self.title,
            'message': self.message,
            'type': self.type,
            'status': self.status,
            'metadata': self.notification_metadata,
            'emailSent': self.email_sent,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if include_rule:
            rule = self.alert_rule
            data['alertRule'] = {
                'name': rule.name,
                'conditionType': rule.condition_type,
                'frequency': rule.frequency,
            } if rule else None
        return data

    def __repr__(self):
        return f"<Notification(id='{self.id}', status='{self.status}')>"
