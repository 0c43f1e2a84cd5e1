"""
Text-to-SQL service.

Answers a natural-language question about sales data as a stream of
server-sent events:

    status -> schema -> status -> sql -> status -> results -> complete

1. Embed the question (OpenAI embeddings)
2. Retrieve the closest schema documentation (match_schema)
3. Generate a query through a forced `generate_sql` function call
4. Execute it read-only
Any failure ends the stream with a single `error` event.
"""
import logging
import time
from typing import Dict, Iterator, List, Optional

from flask import current_app

from salesboard.blueprints.metrics import record_text_to_sql_outcome, time_stage
from salesboard.exceptions import SalesboardError
from salesboard.models import MessageRole
from salesboard.services import conversation_service
from salesboard.services.embedding_service import embed_question, match_schema
from salesboard.services.openai_client import get_openai_client
from salesboard.services.sql_executor import execute_readonly_query
from salesboard.utils.sse import format_event

logger = logging.getLogger(__name__)

QUESTION_REQUIRED = 'Question is required'

SYSTEM_PROMPT_TEMPLATE = """You are a SQL query generator for a sales analytics database.

DATABASE SCHEMA:
{schema}

GUIDELINES:
- Generate only SELECT queries (no INSERT, UPDATE, DELETE, DROP)
- Use proper table aliases for readability
- **CRITICAL: ALWAYS quote column names with double quotes (e.g., "totalAmount", "locationId", "itemId")**
- Column names are case-sensitive camelCase and MUST be quoted
- Leverage indexed columns for filtering (date, "locationId", "itemId", category)
- Convert cents to dollars for currency display (amount / 100.0)
- Use proper date handling (date_trunc, intervals, CURRENT_DATE)
- Use proper GROUP BY for aggregations
- Order results meaningfully (usually DESC for rankings, ASC for chronological)
- Handle NULL values appropriately
- **CRITICAL JOIN RELATIONSHIPS:**
  - orders -> locations: JOIN locations l ON o."locationId" = l."squareLocationId"
  - orders -> line_items: JOIN line_items li ON o."id" = li."orderId"
  - line_items -> items: JOIN items i ON li."itemId" = i."id"
  - items -> categories: JOIN categories c ON i."squareCategoryId" = c."squareCategoryId"

IMPORTANT NOTES:
- **JOIN KEY WARNING:** orders."locationId" joins to locations."squareLocationId" (NOT locations."id"!)
- All monetary amounts in the database are stored in CENTS (divide by 100.0 for dollars)
- Only orders with state = 'COMPLETED' count as sales
- Use proper SQL syntax for PostgreSQL
- **CRITICAL: Always use DATE() to cast timestamp columns for day-based filtering**
- For "yesterday", use: WHERE DATE("date") = (CURRENT_DATE - INTERVAL '1 day')::date
- For "today", use: WHERE DATE("date") = CURRENT_DATE
- For "last 7 days", use: WHERE DATE("date") >= (CURRENT_DATE - INTERVAL '7 days')::date
- For "last week", use: WHERE DATE("date") >= date_trunc('week', CURRENT_DATE - INTERVAL '1 week')::date AND DATE("date") < date_trunc('week', CURRENT_DATE)::date
- For "last month", use: WHERE DATE("date") >= date_trunc('month', CURRENT_DATE - INTERVAL '1 month')::date

USER QUESTION: {question}

Generate a PostgreSQL query that accurately answers this question."""


def _closing_event(event_type: str, **fields) -> str:
    """Last frame of a stream; its type is the outcome counted in metrics."""
    record_text_to_sql_outcome(event_type)
    return format_event(event_type, **fields)


def describe_match(match: Dict) -> str:
    """Short label for a schema match, e.g. 'table: orders (87.5%)'."""
    return f"{match['object_type']}: {match['object_name']} ({match['similarity'] * 100:.1f}%)"


def build_system_prompt(question: str, matches: List[Dict]) -> str:
    schema = '\n\n'.join(
        f"[{m['object_type'].upper()}] {m['object_name']} "
        f"(similarity: {m['similarity'] * 100:.1f}%)\n{m['description']}"
        for m in matches
    )
    return SYSTEM_PROMPT_TEMPLATE.format(schema=schema, question=question)


def generate_sql(question: str, matches: List[Dict]) -> Dict[str, str]:
    """Ask the chat model for a query answering the question. Returns {sql, explanation}."""
    client = get_openai_client()
    return client.generate_sql(
        build_system_prompt(question, matches),
        question,
        current_app.config['CHAT_MODEL'],
    )


def _load_conversation(session, conversation_id: Optional[str], user_id: Optional[str]):
    if not conversation_id or not user_id:
        return None
    try:
        return conversation_service.get_owned_conversation(session, conversation_id, user_id)
    except SalesboardError:
        logger.warning(f"[T2SQL] Conversation {conversation_id} not found for user {user_id}")
        return None


def stream_answer(session, question: Optional[str], conversation_id: Optional[str] = None,
                  user_id: Optional[str] = None) -> Iterator[str]:
    """
    Run the pipeline for one question, yielding SSE frames.

    When conversation_id names a conversation of user_id, the question and
    the answer are appended to it.
    """
    question = (question or '').strip()
    if not question:
        yield _closing_event('error', error=QUESTION_REQUIRED)
        return

    started = time.monotonic()
    conversation = _load_conversation(session, conversation_id, user_id)
    if conversation is not None:
        conversation_service.append_message(session, conversation, MessageRole.USER, question)

    try:
        yield format_event('status', message='Analyzing your question...')
        with time_stage('embed'):
            embedding = embed_question(question)

        yield format_event('status', message='Retrieving relevant schema context...')
        with time_stage('retrieve'):
            matches = match_schema(session, embedding)
        yield format_event(
            'schema',
            message=f"Found {len(matches)} relevant schema objects",
            context=[describe_match(m) for m in matches],
        )

        yield format_event('status', message='Generating SQL query...')
        with time_stage('generate'):
            generated = generate_sql(question, matches)
        sql, explanation = generated['sql'], generated['explanation']
        logger.info(f"[T2SQL] Generated SQL: {sql}")
        yield format_event('sql', message=explanation, query=sql, explanation=explanation)

        yield format_event('status', message='Executing query...')
        with time_stage('execute'):
            rows = execute_readonly_query(session, sql)
        yield format_event('results', message=f"Query returned {len(rows)} row(s)", data=rows)
    except SalesboardError as e:
        logger.warning(f"[T2SQL] Pipeline failed: {e.message}")
        _record_answer(session, conversation, f"Error: {e.message}", {'error': e.message})
        yield _closing_event('error', error=e.message)
        return
    except Exception as e:
        logger.error(f"[T2SQL] Unexpected pipeline failure: {e}", exc_info=True)
        session.rollback()
        _record_answer(session, conversation, 'Error: Unknown error occurred', {'error': str(e)})
        yield _closing_event('error', error=str(e) or 'Unknown error occurred')
        return

    _record_answer(session, conversation, explanation, {
        'sql': sql,
        'rowCount': len(rows),
        'processingTime': round((time.monotonic() - started) * 1000),
    })
    yield _closing_event('complete', message='Query completed successfully')


def _record_answer(session, conversation, content: str, metadata: dict):
    if conversation is None:
        return
    conversation_service.append_message(
        session, conversation, MessageRole.ASSISTANT, content or 'Query executed', metadata
    )
