"""
Alert service.

Alert rules describe sales milestones a user wants to hear about; notifications
are what a rule produces when it fires. Both are private to their owner, and
records of other users are reported as not found.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from salesboard.exceptions import NotFoundError
from salesboard.models import AlertRule, Notification, NotificationStatus

logger = logging.getLogger(__name__)

ALERT_NOT_FOUND = 'Alert not found'
NOTIFICATION_NOT_FOUND = 'Notification not found'
RECENT_NOTIFICATIONS = 5
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Fields a partial update may touch; only description may be cleared
UPDATABLE_FIELDS = ('name', 'description', 'condition_type', 'condition_data', 'frequency', 'is_active')
NULLABLE_FIELDS = {'description'}


def _condition_with_type(condition_type: str, condition_data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Condition payload carrying the rule's type, which rule evaluation keys on."""
    data = dict(condition_data or {})
    data['type'] = condition_type
    return data


def list_alerts(session, user_id: str) -> List[Dict[str, Any]]:
    """Alert rules of a user, newest first, each with its latest notifications."""
    rules = (
        session.query(AlertRule)
        .filter(AlertRule.user_id == user_id)
        .order_by(AlertRule.created_at.desc())
        .all()
    )
    return [rule.to_dict(recent_notifications=rule.notifications[:RECENT_NOTIFICATIONS]) for rule in rules]


def create_alert(session, user_id: str, name: str, condition_type: str, condition_data: Dict[str, Any],
                 frequency: str, description: Optional[str] = None, is_active: bool = True) -> AlertRule:
    rule = AlertRule(
        user_id=user_id,
        name=name,
        description=description,
        condition_type=condition_type,
        condition_data=_condition_with_type(condition_type, condition_data),
        frequency=frequency,
        is_active=is_active,
    )
    session.add(rule)
    session.commit()
    logger.info(f"[ALERTS] Created alert {rule.id} ({condition_type}) for user {user_id}")
    return rule


def get_owned_alert(session, alert_id: str, user_id: str) -> AlertRule:
    """
    Load an alert rule owned by user_id.

    Raises:
        NotFoundError: missing, or owned by someone else
    """
    rule = session.query(AlertRule).filter(
        AlertRule.id == alert_id,
        AlertRule.user_id == user_id
    ).first()
    if not rule:
        raise NotFoundError(ALERT_NOT_FOUND)
    return rule


def update_alert(session, rule: AlertRule, changes: Dict[str, Any]) -> AlertRule:
    """
    Apply the given fields.

    Keys outside UPDATABLE_FIELDS are ignored, as are nulls for required fields.
    """
    applied = []
    for field in UPDATABLE_FIELDS:
        if field not in changes:
            continue
        if changes[field] is None and field not in NULLABLE_FIELDS:
            continue
        setattr(rule, field, changes[field])
        applied.append(field)

    if 'condition_type' in applied or 'condition_data' in applied:
        rule.condition_data = _condition_with_type(rule.condition_type, rule.condition_data)

    rule.updated_at = datetime.now(timezone.utc)
    session.commit()
    logger.info(f"[ALERTS] Updated alert {rule.id}: {', '.join(applied) or 'no changes'}")
    return rule


def delete_alert(session, rule: AlertRule) -> None:
    """Delete a rule together with its notifications."""
    alert_id = rule.id
    session.delete(rule)
    session.commit()
    logger.info(f"[ALERTS] Deleted alert {alert_id}")


def record_notification(session, rule: AlertRule, message: str, metadata: Optional[dict] = None) -> Notification:
    """Store an unread notification for a fired rule and stamp its trigger time."""
    notification = Notification(
        user_id=rule.user_id,
        alert_rule_id=rule.id,
        title=rule.name,
        message=message,
        status=NotificationStatus.UNREAD,
        notification_metadata=metadata,
    )
    session.add(notification)
    rule.last_triggered_at = datetime.now(timezone.utc)
    session.commit()
    return notification


def list_notifications(session, user_id: str, status: str = 'all', limit: int = DEFAULT_PAGE_SIZE,
                       offset: int = 0) -> Dict[str, Any]:
    """
    One page of a user's notifications, newest first.

    Args:
        status: 'unread', 'read' or 'all'
        limit: page size, capped at MAX_PAGE_SIZE
        offset: notifications to skip

    Returns:
        {notifications, total, limit, offset}; total counts every match
    """
    limit = min(limit, MAX_PAGE_SIZE)
    query = session.query(Notification).filter(Notification.user_id == user_id)
    if status != 'all':
        query = query.filter(Notification.status == status)

    total = query.count()
    page = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit).all()

    return {
        'notifications': [n.to_dict(include_rule=True) for n in page],
        'total': total,
        'limit': limit,
        'offset': offset,
    }


def get_owned_notification(session, notification_id: str, user_id: str) -> Notification:
    notification = session.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).first()
    if not notification:
        raise NotFoundError(NOTIFICATION_NOT_FOUND)
    return notification


def set_notification_status(session, notification: Notification, status: str) -> Notification:
    notification.status = status
    notification.updated_at = datetime.now(timezone.utc)
    session.commit()
    return notification


def delete_notification(session, notification: Notification) -> None:
    session.delete(notification)
    session.commit()
