"""
Unit tests for the conversation service.
"""

import pytest

from salesboard.exceptions import NotFoundError
from salesboard.models import MessageRole
from salesboard.services import conversation_service


class TestGenerateTitle:

    def test_short_question_used_as_is(self):
        assert conversation_service.generate_title('Top items this week') == 'Top items this week'

    def test_question_word_dropped_and_capitalized(self):
        assert conversation_service.generate_title('what were sales yesterday') == 'Were sales yesterday'

    def test_long_question_cut_at_first_sentence(self):
        question = 'Show revenue per location for last month. Include the order counts and the average ticket too'
        assert conversation_service.generate_title(question) == 'Show revenue per location for last month'

    def test_long_sentence_truncated(self):
        question = 'show ' + 'revenue and orders per location ' * 4
        title = conversation_service.generate_title(question)
        assert title.endswith('...')
        assert len(title) == 53

    def test_too_short_falls_back_to_default(self):
        assert conversation_service.generate_title('how sales') == conversation_service.DEFAULT_TITLE
        assert conversation_service.generate_title('') == 'Chat Conversation'


class TestConversations:

    def test_owned_conversation_only(self, session):
        conversation = conversation_service.create_conversation(session, 'user-1', 'Mine')

        assert conversation_service.get_owned_conversation(session, conversation.id, 'user-1') is conversation
        with pytest.raises(NotFoundError) as exc:
            conversation_service.get_owned_conversation(session, conversation.id, 'user-2')
        assert exc.value.message == 'Conversation not found'

    def test_first_user_message_sets_title(self, session):
        conversation = conversation_service.create_conversation(session, 'user-1')

        conversation_service.append_message(session, conversation, MessageRole.USER, 'Which location sold the most?')
        conversation_service.append_message(session, conversation, MessageRole.USER, 'And yesterday?')

        assert conversation.title == 'Which location sold the most?'

    def test_assistant_message_keeps_metadata(self, session):
        conversation = conversation_service.create_conversation(session, 'user-1', 'Sales')
        conversation_service.append_message(
            session, conversation, MessageRole.ASSISTANT, 'Counts orders', {'sql': 'SELECT 1', 'rowCount': 1}
        )

        messages = conversation_service.get_messages(session, conversation.id)
        assert messages[0].message_metadata == {'sql': 'SELECT 1', 'rowCount': 1}

    def test_list_and_stats(self, session):
        first = conversation_service.create_conversation(session, 'user-1', 'First')
        conversation_service.create_conversation(session, 'user-1', 'Empty')
        conversation_service.create_conversation(session, 'user-2', 'Not mine')
        conversation_service.append_message(session, first, MessageRole.USER, 'Question one here')
        conversation_service.append_message(session, first, MessageRole.ASSISTANT, 'Answer one')

        items = conversation_service.list_conversations(session, 'user-1')
        by_title = {item['title']: item for item in items}

        assert set(by_title) == {'First', 'Empty'}
        assert by_title['First']['messageCount'] == 2
        assert by_title['First']['lastMessage'] == 'Answer one'
        assert by_title['Empty']['messageCount'] == 0
        assert by_title['Empty']['lastMessage'] == ''

        stats = conversation_service.get_conversation_stats(session, 'user-1')
        assert stats['totalConversations'] == 2
        assert stats['totalMessages'] == 2
        assert stats['averageMessagesPerConversation'] == 1
        assert stats['mostRecentActivity'] is not None

    def test_stats_without_conversations(self, session):
        stats = conversation_service.get_conversation_stats(session, 'nobody')
        assert stats == {
            'totalConversations': 0,
            'totalMessages': 0,
            'averageMessagesPerConversation': 0,
            'mostRecentActivity': None,
        }

    def test_detail_with_message_limit(self, session):
        conversation = conversation_service.create_conversation(session, 'user-1', 'Limits')
        for text in ('first question', 'first answer', 'second question'):
            conversation_service.append_message(session, conversation, MessageRole.USER, text)

        detail = conversation_service.conversation_detail(session, conversation, message_limit=2)

        assert [m['content'] for m in detail['messages']] == ['first question', 'first answer']
        assert 'messages' not in conversation_service.conversation_detail(
            session, conversation, include_messages=False
        )
