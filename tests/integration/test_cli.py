"""
Integration tests for the Flask CLI commands.
"""

import pytest
import requests

from salesboard.models import SchemaEmbedding
from salesboard.services.openai_client import OpenAIClient
from salesboard.services.schema_docs import build_schema_docs
from salesboard.utils.sse import format_event


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


class TestCheckLocations:

    def test_lists_locations_with_revenue(self, runner, sales_data):
        result = runner.invoke(args=['check-locations'])

        assert result.exit_code == 0
        assert 'Downtown (ID: LOC-DT, Orders: 3, Revenue: $144.00)' in result.output
        assert 'Empty Corner (ID: LOC-EM, Orders: 0, Revenue: $0.00)' in result.output

    def test_match_is_case_insensitive(self, runner, sales_data):
        result = runner.invoke(args=['check-locations', '--match', 'HARB'])

        assert "Matches for 'HARB':" in result.output
        assert 'Harbour (ID: LOC-HB)' in result.output


class TestTodaysSales:

    def test_orders_of_the_day(self, runner, sales_data):
        result = runner.invoke(args=['todays-sales', '--tz', 'UTC'])

        assert result.exit_code == 0
        assert 'Found 4 sales for today' in result.output
        assert 'Total revenue: $81.00' in result.output
        assert '2 x Latte = $10.00' in result.output

    def test_no_orders(self, runner):
        result = runner.invoke(args=['todays-sales', '--tz', 'America/Toronto'])

        assert result.exit_code == 0
        assert 'Found 0 sales for today' in result.output


class TestGenerateEmbeddings:

    def test_embeds_catalogue(self, runner, session, mocker):
        mocker.patch.object(OpenAIClient, 'embed', side_effect=lambda texts, model: [[1.0, 0.0] for _ in texts])
        expected = len(build_schema_docs())

        result = runner.invoke(args=['generate-embeddings', '--clear'])

        assert result.exit_code == 0
        assert f'Stored {expected} embeddings' in result.output
        assert session.query(SchemaEmbedding).count() == expected

    def test_failure_exits_nonzero(self, runner, mocker):
        mocker.patch.object(OpenAIClient, 'embed', return_value=[])

        result = runner.invoke(args=['generate-embeddings'])

        assert result.exit_code == 1
        assert 'Embedding generation failed' in result.output


class TestTextToSqlCommand:

    def test_prints_stream(self, runner, mocker):
        frames = [
            format_event('status', message='Analyzing your question...'),
            format_event('sql', message='Counts', query='SELECT 1', explanation='Counts'),
            format_event('results', message='Query returned 1 row(s)', data=[{'total': 5}]),
            format_event('complete', message='Query completed successfully'),
        ]
        response = mocker.MagicMock(status_code=200)
        response.iter_lines.return_value = ''.join(frames).split('\n')
        post = mocker.patch('salesboard.cli_commands.requests.post')
        post.return_value.__enter__.return_value = response

        result = runner.invoke(args=['text-to-sql', 'How many?', '--url', 'http://app.test/api/text-to-sql'])

        assert result.exit_code == 0
        assert 'Question: How many?' in result.output
        assert 'SELECT 1' in result.output
        assert 'total' in result.output
        assert 'Query completed successfully' in result.output
        assert post.call_args.args[0] == 'http://app.test/api/text-to-sql'
        assert post.call_args.kwargs['json'] == {'question': 'How many?'}

    def test_connection_error_reported(self, runner, mocker):
        mocker.patch('salesboard.cli_commands.requests.post', side_effect=requests.ConnectionError('refused'))

        result = runner.invoke(args=['text-to-sql', 'Anything?'])

        assert result.exit_code == 0
        assert 'Request failed' in result.output
