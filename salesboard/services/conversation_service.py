"""Conversation service: chat threads owned by a user."""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from salesboard.exceptions import NotFoundError
from salesboard.models import Conversation, ChatMessage, MessageRole

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = 'Conversation not found'
DEFAULT_TITLE = 'Chat Conversation'
SHORT_MESSAGE_LIMIT = 50
SENTENCE_LIMIT = 80
TRUNCATED_LIMIT = 50
MIN_TITLE_LENGTH = 10

_QUESTION_WORDS = re.compile(r'^(what|how|why|when|where|can|could|would|should)\s+', re.IGNORECASE)


def create_conversation(session, user_id: str, title: Optional[str] = None) -> Conversation:
    conversation = Conversation(user_id=user_id, title=title)
    session.add(conversation)
    session.commit()
    logger.info(f"[CHAT] Created conversation {conversation.id} for user {user_id}")
    return conversation


def get_owned_conversation(session, conversation_id: str, user_id: str) -> Conversation:
    """
    Load a conversation owned by user_id.

    Raises:
        NotFoundError: missing, or owned by someone else
    """
    conversation = session.query(Conversation).filter(
        Conversation.id == conversation_id,
        Conversation.user_id == user_id
    ).first()
    if not conversation:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return conversation


def list_conversations(session, user_id: str) -> List[Dict[str, Any]]:
    """
    Conversations of a user, most recently updated first.

    Each item carries the message count and a preview of the latest message.
    """
    counts = dict(
        session.query(ChatMessage.conversation_id, func.count(ChatMessage.id))
        .join(Conversation, Conversation.id == ChatMessage.conversation_id)
        .filter(Conversation.user_id == user_id)
        .group_by(ChatMessage.conversation_id)
        .all()
    )

    conversations = (
        session.query(Conversation)
        .filter(Conversation.user_id == user_id)
        .order_by(Conversation.updated_at.desc())
        .all()
    )

    items = []
    for conversation in conversations:
        last = (
            session.query(ChatMessage)
            .filter(ChatMessage.conversation_id == conversation.id)
            .order_by(ChatMessage.created_at.desc())
            .first()
        )
        last_at = last.created_at if last else conversation.updated_at
        items.append({
            'id': conversation.id,
            'title': conversation.title,
            'lastMessageAt': last_at.isoformat() if last_at else None,
            'messageCount': counts.get(conversation.id, 0),
            'lastMessage': last.content if last else '',
        })
    return items


def get_conversation_stats(session, user_id: str) -> Dict[str, Any]:
    """Totals across a user's conversations."""
    total_conversations = session.query(func.count(Conversation.id)).filter(
        Conversation.user_id == user_id
    ).scalar() or 0

    total_messages, most_recent = session.query(
        func.count(ChatMessage.id), func.max(ChatMessage.created_at)
    ).join(Conversation, Conversation.id == ChatMessage.conversation_id).filter(
        Conversation.user_id == user_id
    ).one()

    average = round(total_messages / total_conversations, 2) if total_conversations else 0

    return {
        'totalConversations': total_conversations,
        'totalMessages': total_messages or 0,
        'averageMessagesPerConversation': average,
        'mostRecentActivity': most_recent.isoformat() if most_recent else None,
    }


def get_messages(session, conversation_id: str, limit: Optional[int] = None) -> List[ChatMessage]:
    """Messages in chronological order, optionally only the first `limit`."""
    query = (
        session.query(ChatMessage)
        .filter(ChatMessage.conversation_id == conversation_id)
        .order_by(ChatMessage.created_at.asc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def conversation_detail(session, conversation: Conversation, include_messages: bool = True,
                        message_limit: Optional[int] = None) -> Dict[str, Any]:
    data = conversation.to_dict()
    if include_messages:
        data['messages'] = [m.to_dict() for m in get_messages(session, conversation.id, message_limit)]
    return data


def update_title(session, conversation: Conversation, title: str) -> Conversation:
    conversation.title = title
    conversation.updated_at = datetime.now(timezone.utc)
    session.commit()
    logger.info(f"[CHAT] Renamed conversation {conversation.id}")
    return conversation


def delete_conversation(session, conversation: Conversation) -> None:
    conversation_id = conversation.id
    session.delete(conversation)
    session.commit()
    logger.info(f"[CHAT] Deleted conversation {conversation_id}")


def generate_title(question: str) -> str:
    """
    Derive a short title from the first question of a conversation.

    Short questions are used as-is, longer ones are cut at the first sentence
    or truncated; leading question words are dropped.
    """
    question = (question or '').strip()
    if len(question) < SHORT_MESSAGE_LIMIT:
        title = question
    else:
        first_sentence = re.split(r'[.!?]', question)[0]
        if first_sentence and len(first_sentence) < SENTENCE_LIMIT:
            title = first_sentence
        else:
            title = question[:TRUNCATED_LIMIT] + '...'

    title = _QUESTION_WORDS.sub('', title.strip())
    title = title[:1].upper() + title[1:]

    if len(title) < MIN_TITLE_LENGTH:
        return DEFAULT_TITLE
    return title


def append_message(session, conversation: Conversation, role: str, content: str,
                   metadata: Optional[dict] = None) -> ChatMessage:
    """
    Add a message and bump the conversation's updated_at.

    The first user message of an untitled conversation also sets its title.
    """
    message = ChatMessage(
        conversation_id=conversation.id,
        role=role,
        content=content,
        message_metadata=metadata,
    )
    session.add(message)

    if role == MessageRole.USER and not conversation.title:
        conversation.title = generate_title(content)
    conversation.updated_at = datetime.now(timezone.utc)

    session.commit()
    return message
