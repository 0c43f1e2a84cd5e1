"""
Conversations API.
Chat threads of the signed-in user. Conversations of other users are
reported as not found.
"""

from flask import Blueprint, request, jsonify, g

from salesboard.database import get_session
from salesboard.middleware import require_api_user
from salesboard.schemas import CreateConversationRequest, UpdateConversationRequest, parse_body
from salesboard.services import conversation_service


conversations_bp = Blueprint('conversations', __name__, url_prefix='/api/conversations')


def _positive_int(value):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@conversations_bp.route('', methods=['GET'])
@require_api_user
def list_conversations():
    """List conversations; ?includeStats=true adds totals."""
    db_session = get_session()
    response = {
        'success': True,
        'conversations': conversation_service.list_conversations(db_session, g.user_id),
    }
    if request.args.get('includeStats') == 'true':
        response['stats'] = conversation_service.get_conversation_stats(db_session, g.user_id)
    return jsonify(response)


@conversations_bp.route('', methods=['POST'])
@require_api_user
def create_conversation():
    data = parse_body(CreateConversationRequest, request.get_json(silent=True))
    conversation = conversation_service.create_conversation(get_session(), g.user_id, data.title.strip())
    return jsonify({'success': True, 'conversation': conversation.to_dict()}), 201


@conversations_bp.route('/<conversation_id>', methods=['GET'])
@require_api_user
def get_conversation(conversation_id):
    """
    One conversation.

    Query params:
        includeMessages: 'false' to omit messages (default true)
        messageLimit: first N messages only
    """
    db_session = get_session()
    conversation = conversation_service.get_owned_conversation(db_session, conversation_id, g.user_id)
    detail = conversation_service.conversation_detail(
        db_session,
        conversation,
        include_messages=request.args.get('includeMessages') != 'false',
        message_limit=_positive_int(request.args.get('messageLimit'))
    )
    return jsonify({'success': True, 'conversation': detail})


@conversations_bp.route('/<conversation_id>', methods=['PATCH'])
@require_api_user
def update_conversation(conversation_id):
    db_session = get_session()
    data = parse_body(UpdateConversationRequest, request.get_json(silent=True))
    conversation = conversation_service.get_owned_conversation(db_session, conversation_id, g.user_id)
    if data.title is not None:
        conversation_service.update_title(db_session, conversation, data.title.strip())
    return jsonify({'success': True, 'conversation': conversation.to_dict()})


@conversations_bp.route('/<conversation_id>', methods=['DELETE'])
@require_api_user
def delete_conversation(conversation_id):
    db_session = get_session()
    conversation = conversation_service.get_owned_conversation(db_session, conversation_id, g.user_id)
    conversation_service.delete_conversation(db_session, conversation)
    return jsonify({'success': True, 'message': 'Conversation deleted successfully'})
