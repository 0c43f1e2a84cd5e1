"""
Chat blueprint.
Chat page and the streaming text-to-SQL endpoint.
"""

from flask import Blueprint, render_template, request, Response, stream_with_context, current_app
from salesboard.database import get_session
from salesboard.exceptions import SalesboardError
from salesboard.schemas import TextToSQLRequest, parse_body
from salesboard.services import auth_service
from salesboard.services.text_to_sql_service import stream_answer
from salesboard.utils.sse import SSE_HEADERS

chat_bp = Blueprint('chat', __name__)


@chat_bp.route('/chat')
def index():
    return render_template('chat/index.html')


def _optional_user_id():
    """User id for the auth cookie, or None when signed out or the token is stale."""
    token = auth_service.get_access_token(request.cookies)
    if not token:
        return None
    try:
        return auth_service.get_user_for_token(token)['id']
    except SalesboardError as e:
        current_app.logger.info(f"[T2SQL] Ignoring auth cookie: {e.message}")
        return None


@chat_bp.route('/api/text-to-sql', methods=['POST'])
def text_to_sql():
    """
    Answer a question as a server-sent event stream.

    Body: {"question": str, "conversationId": optional str}
    """
    try:
        body = parse_body(TextToSQLRequest, request.get_json(silent=True) or {})
    except SalesboardError:
        body = TextToSQLRequest()

    user_id = _optional_user_id() if body.conversation_id else None
    frames = stream_answer(get_session(), body.question, body.conversation_id, user_id)

    return Response(
        stream_with_context(frames),
        mimetype='text/event-stream',
        headers=SSE_HEADERS
    )
