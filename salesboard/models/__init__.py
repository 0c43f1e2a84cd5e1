"""Models package - exports all SQLAlchemy models."""
from salesboard.models.profile import Profile

# Sales Models
from salesboard.models.location import Location
from salesboard.models.category import Category
from salesboard.models.item import Item
from salesboard.models.order import Order, OrderState
from salesboard.models.line_item import LineItem

# Chat / text-to-SQL
from salesboard.models.conversation import Conversation, ChatMessage, MessageRole
from salesboard.models.schema_embedding import SchemaEmbedding

# Alerts
from salesboard.models.alert import AlertRule, Notification, ConditionType, AlertFrequency, NotificationStatus

__all__ = [
    'Profile',
    'Location', 'Category', 'Item', 'Order', 'OrderState', 'LineItem',
    'Conversation', 'ChatMessage', 'MessageRole',
    'SchemaEmbedding',
    'AlertRule', 'Notification', 'ConditionType', 'AlertFrequency', 'NotificationStatus',
]
