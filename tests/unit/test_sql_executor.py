"""
Unit tests for read-only SQL validation and execution.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from salesboard.exceptions import UnsafeQueryError, QueryExecutionError
from salesboard.models import Location
from salesboard.services.sql_executor import (
    clean_sql, validate_readonly_sql, to_json_safe, execute_readonly_query
)


class TestValidateReadonlySql:
    """Tests for the read-only query guard."""

    def test_select_is_allowed(self):
        assert validate_readonly_sql('SELECT * FROM orders') == 'SELECT * FROM orders'

    def test_with_is_allowed(self):
        sql = 'WITH t AS (SELECT 1 AS n) SELECT n FROM t'
        assert validate_readonly_sql(sql) == sql

    def test_trailing_semicolons_removed(self):
        assert clean_sql('  SELECT 1;;  ') == 'SELECT 1'
        assert validate_readonly_sql('select 1;') == 'select 1'

    def test_must_start_with_select_or_with(self):
        with pytest.raises(UnsafeQueryError) as exc:
            validate_readonly_sql('EXPLAIN SELECT 1')
        assert 'must start with SELECT or WITH' in exc.value.message

    def test_selection_prefix_is_not_select(self):
        """A word merely starting with 'select' is rejected."""
        with pytest.raises(UnsafeQueryError):
            validate_readonly_sql('selection FROM orders')

    @pytest.mark.parametrize('sql', [
        'SELECT 1; DROP TABLE orders',
        'SELECT * FROM orders WHERE id IN (DELETE FROM orders RETURNING id)',
        'with x as (update orders set state = 1 returning *) select * from x',
        'SELECT * FROM orders; TRUNCATE orders',
    ])
    def test_forbidden_keywords_rejected(self, sql):
        with pytest.raises(UnsafeQueryError) as exc:
            validate_readonly_sql(sql)
        assert 'forbidden' in exc.value.message

    def test_forbidden_keyword_inside_identifier_is_allowed(self):
        """Word boundaries: "createdAt" and "updatedAt" are fine."""
        sql = 'SELECT "createdAt", "updatedAt" FROM orders'
        assert validate_readonly_sql(sql) == sql

    def test_multiple_statements_rejected(self):
        with pytest.raises(UnsafeQueryError) as exc:
            validate_readonly_sql('SELECT 1; SELECT 2')
        assert exc.value.message == 'Multiple SQL statements are not allowed'

    def test_semicolon_inside_literal_is_allowed(self):
        sql = "SELECT name FROM items WHERE name = 'a;b'"
        assert validate_readonly_sql(sql) == sql


class TestToJsonSafe:

    def test_conversions(self):
        assert to_json_safe(Decimal('12.50')) == 12.5
        assert to_json_safe(datetime(2025, 1, 2, 3, 4, 5)) == '2025-01-02T03:04:05'
        assert to_json_safe(UUID('12345678-1234-5678-1234-567812345678')) == '12345678-1234-5678-1234-567812345678'
        assert to_json_safe(7) == 7
        assert to_json_safe(None) is None


class TestExecuteReadonlyQuery:
    """Execution against the test database."""

    def test_returns_rows_as_dicts(self, app_context, session):
        session.add(Location(square_location_id='LOC-1', name='Downtown'))
        session.commit()

        rows = execute_readonly_query(
            session, 'SELECT "squareLocationId" AS id, name FROM locations ORDER BY name;'
        )

        assert rows == [{'id': 'LOC-1', 'name': 'Downtown'}]

    def test_unsafe_query_never_executes(self, app_context, session):
        with pytest.raises(UnsafeQueryError):
            execute_readonly_query(session, 'DELETE FROM locations')

    def test_database_error_wrapped(self, app_context, session):
        with pytest.raises(QueryExecutionError) as exc:
            execute_readonly_query(session, 'SELECT * FROM no_such_table')
        assert exc.value.message.startswith('Query execution failed: ')
        assert exc.value.status_code == 500
