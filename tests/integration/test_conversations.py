"""
Integration tests for the conversations API.
"""

import pytest

from salesboard.models import MessageRole
from salesboard.services import conversation_service


@pytest.fixture
def conversation_ids(session):
    """Two conversations of the signed-in user and one of another user."""
    mine = conversation_service.create_conversation(session, 'user-1111', 'Weekly revenue')
    conversation_service.append_message(session, mine, MessageRole.USER, 'Revenue this week?')
    conversation_service.append_message(session, mine, MessageRole.ASSISTANT, 'Sums completed orders')
    empty = conversation_service.create_conversation(session, 'user-1111', 'Empty thread')
    theirs = conversation_service.create_conversation(session, 'user-2222', 'Not yours')
    return {'mine': mine.id, 'empty': empty.id, 'theirs': theirs.id}


class TestAuthentication:

    def test_requires_session(self, client):
        response = client.get('/api/conversations')

        assert response.status_code == 401
        assert response.get_json() == {'error': 'Authentication required'}


class TestListAndCreate:

    def test_list_own_conversations(self, authenticated_client, conversation_ids):
        response = authenticated_client.get('/api/conversations')

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert 'stats' not in data
        ids = {c['id'] for c in data['conversations']}
        assert ids == {conversation_ids['mine'], conversation_ids['empty']}

    def test_list_with_stats(self, authenticated_client, conversation_ids):
        data = authenticated_client.get('/api/conversations?includeStats=true').get_json()

        assert data['stats']['totalConversations'] == 2
        assert data['stats']['totalMessages'] == 2
        assert data['stats']['averageMessagesPerConversation'] == 1

    def test_create(self, authenticated_client):
        response = authenticated_client.post('/api/conversations', json={'title': '  Top sellers  '})

        assert response.status_code == 201
        conversation = response.get_json()['conversation']
        assert conversation['title'] == 'Top sellers'
        assert conversation['userId'] == 'user-1111'

    @pytest.mark.parametrize('body', [{}, {'title': ''}, {'title': 'x' * 201}])
    def test_create_invalid(self, authenticated_client, body):
        response = authenticated_client.post('/api/conversations', json=body)

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Invalid input'}


class TestSingleConversation:

    def test_get_with_messages(self, authenticated_client, conversation_ids):
        response = authenticated_client.get(f"/api/conversations/{conversation_ids['mine']}")

        assert response.status_code == 200
        conversation = response.get_json()['conversation']
        assert [m['role'] for m in conversation['messages']] == ['user', 'assistant']

    def test_get_message_options(self, authenticated_client, conversation_ids):
        url = f"/api/conversations/{conversation_ids['mine']}"

        limited = authenticated_client.get(f'{url}?messageLimit=1').get_json()['conversation']
        assert [m['content'] for m in limited['messages']] == ['Revenue this week?']

        bare = authenticated_client.get(f'{url}?includeMessages=false').get_json()['conversation']
        assert 'messages' not in bare

    def test_other_users_conversation_not_found(self, authenticated_client, conversation_ids):
        url = f"/api/conversations/{conversation_ids['theirs']}"

        for response in (
            authenticated_client.get(url),
            authenticated_client.patch(url, json={'title': 'Mine now'}),
            authenticated_client.delete(url),
        ):
            assert response.status_code == 404
            assert response.get_json() == {'error': 'Conversation not found'}

    def test_rename(self, authenticated_client, conversation_ids):
        response = authenticated_client.patch(
            f"/api/conversations/{conversation_ids['empty']}", json={'title': 'Renamed'}
        )

        assert response.status_code == 200
        assert response.get_json()['conversation']['title'] == 'Renamed'

    def test_delete(self, authenticated_client, conversation_ids, session):
        response = authenticated_client.delete(f"/api/conversations/{conversation_ids['mine']}")

        assert response.status_code == 200
        assert response.get_json() == {'success': True, 'message': 'Conversation deleted successfully'}
        assert conversation_service.list_conversations(session, 'user-1111')[0]['id'] == conversation_ids['empty']
        assert conversation_service.get_messages(session, conversation_ids['mine']) == []
