"""
Alerts blueprint.
Notifications page plus the alert-rule and notification APIs of the signed-in
user. Single records are addressed with ?id=.
"""

from flask import Blueprint, render_template, request, jsonify, g

from salesboard.database import get_session
from salesboard.exceptions import ValidationError
from salesboard.middleware import require_api_user
from salesboard.schemas import CreateAlertRequest, UpdateAlertRequest, UpdateNotificationRequest, parse_body
from salesboard.services import alert_service

alerts_bp = Blueprint('alerts', __name__)

STATUS_FILTERS = ('all', 'unread', 'read')


def _required_id(label):
    record_id = request.args.get('id')
    if not record_id:
        raise ValidationError(f'{label} ID is required')
    return record_id


def _non_negative_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 0 else default


@alerts_bp.route('/notifications')
def notifications_page():
    return render_template('alerts/notifications.html')


@alerts_bp.route('/api/alerts', methods=['GET'])
@require_api_user
def list_alerts():
    return jsonify({'success': True, 'alerts': alert_service.list_alerts(get_session(), g.user_id)})


@alerts_bp.route('/api/alerts', methods=['POST'])
@require_api_user
def create_alert():
    data = parse_body(CreateAlertRequest, request.get_json(silent=True))
    rule = alert_service.create_alert(
        get_session(),
        g.user_id,
        name=data.name.strip(),
        description=data.description,
        condition_type=data.condition_type,
        condition_data=data.condition_data,
        frequency=data.frequency,
        is_active=data.is_active,
    )
    return jsonify({'success': True, 'alert': rule.to_dict()}), 201


@alerts_bp.route('/api/alerts', methods=['PATCH'])
@require_api_user
def update_alert():
    alert_id = _required_id('Alert')
    data = parse_body(UpdateAlertRequest, request.get_json(silent=True))
    db_session = get_session()
    rule = alert_service.get_owned_alert(db_session, alert_id, g.user_id)
    changes = {field: getattr(data, field) for field in data.model_fields_set}
    alert_service.update_alert(db_session, rule, changes)
    return jsonify({'success': True, 'alert': rule.to_dict()})


@alerts_bp.route('/api/alerts', methods=['DELETE'])
@require_api_user
def delete_alert():
    db_session = get_session()
    rule = alert_service.get_owned_alert(db_session, _required_id('Alert'), g.user_id)
    alert_service.delete_alert(db_session, rule)
    return jsonify({'success': True})


@alerts_bp.route('/api/notifications', methods=['GET'])
@require_api_user
def list_notifications():
    """
    Page through notifications.

    Query params:
        status: all (default), unread or read
        limit: page size (default 20, max 100)
        offset: notifications to skip (default 0)
    """
    status = request.args.get('status') or 'all'
    if status not in STATUS_FILTERS:
        raise ValidationError('Invalid input')

    page = alert_service.list_notifications(
        get_session(),
        g.user_id,
        status=status,
        limit=_non_negative_int(request.args.get('limit'), alert_service.DEFAULT_PAGE_SIZE),
        offset=_non_negative_int(request.args.get('offset'), 0),
    )
    return jsonify({'success': True, **page})


@alerts_bp.route('/api/notifications', methods=['PATCH'])
@require_api_user
def update_notification():
    notification_id = _required_id('Notification')
    data = parse_body(UpdateNotificationRequest, request.get_json(silent=True))
    db_session = get_session()
    notification = alert_service.get_owned_notification(db_session, notification_id, g.user_id)
    alert_service.set_notification_status(db_session, notification, data.status)
    return jsonify({'success': True, 'notification': notification.to_dict()})


@alerts_bp.route('/api/notifications', methods=['DELETE'])
@require_api_user
def delete_notification():
    db_session = get_session()
    notification = alert_service.get_owned_notification(db_session, _required_id('Notification'), g.user_id)
    alert_service.delete_notification(db_session, notification)
    return jsonify({'success': True})
