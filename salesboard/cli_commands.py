"""
Flask CLI commands for diagnostics and maintenance.

Commands:
- flask init-db: Create all tables
- flask generate-embeddings: Embed the schema documentation catalogue
- flask text-to-sql: Ask questions against a running server's SSE endpoint
- flask check-locations: Locations with order counts and revenue
- flask todays-sales: Orders of the local day with totals
"""

import click
import requests
from flask import current_app
from sqlalchemy import func
from datetime import timezone

from salesboard.database import db_session, create_tables
from salesboard.exceptions import SalesboardError
from salesboard.models import Location, Order
from salesboard.utils.formatters import money_from_cents
from salesboard.utils.sse import iter_events
from salesboard.utils.timezone import local_day_range, resolve_timezone

DEFAULT_TEXT_TO_SQL_URL = 'http://localhost:5000/api/text-to-sql'
RESULT_PREVIEW_ROWS = 10


def print_event(event):
    """Render one text-to-SQL event on the terminal."""
    event_type = event.get('type')

    if event_type == 'status':
        click.echo(click.style(f"... {event.get('message')}", fg='cyan'))
    elif event_type == 'schema':
        click.echo(click.style(event.get('message', ''), fg='blue'))
        for entry in event.get('context', []):
            click.echo(f"    - {entry}")
    elif event_type == 'sql':
        click.echo(click.style('SQL:', fg='yellow', bold=True))
        click.echo(event.get('query', ''))
        click.echo(click.style(f"Explanation: {event.get('explanation', '')}", fg='yellow'))
    elif event_type == 'results':
        rows = event.get('data') or []
        click.echo(click.style(event.get('message', ''), fg='green'))
        print_rows(rows[:RESULT_PREVIEW_ROWS])
        if len(rows) > RESULT_PREVIEW_ROWS:
            click.echo(f"    ... {len(rows) - RESULT_PREVIEW_ROWS} more row(s)")
    elif event_type == 'error':
        click.echo(click.style(f"Error: {event.get('error')}", fg='red'))
    elif event_type == 'complete':
        click.echo(click.style(event.get('message', ''), fg='green', bold=True))


def print_rows(rows):
    if not rows:
        return
    columns = list(rows[0].keys())
    widths = {
        col: max(len(str(col)), *(len(str(row.get(col, ''))) for row in rows))
        for col in columns
    }
    click.echo('    ' + ' | '.join(str(col).ljust(widths[col]) for col in columns))
    click.echo('    ' + '-+-'.join('-' * widths[col] for col in columns))
    for row in rows:
        click.echo('    ' + ' | '.join(str(row.get(col, '')).ljust(widths[col]) for col in columns))


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        create_tables()
        click.echo(click.style('Tables created.', fg='green'))

    @app.cli.command('generate-embeddings')
    @click.option('--clear', is_flag=True, help='Delete existing embeddings first')
    def generate_embeddings_command(clear):
        """Embed the schema documentation and upsert it into schema_embeddings."""
        from salesboard.services.embedding_service import generate_embeddings
        from salesboard.services.schema_docs import build_schema_docs

        docs = build_schema_docs()
        click.echo(f"Generated {len(docs)} schema documentation entries")
        click.echo(f"Model: {current_app.config['EMBEDDING_MODEL']}")

        try:
            result = generate_embeddings(
                db_session,
                clear=clear,
                docs=docs,
                progress=lambda done, total: click.echo(f"    stored {done}/{total}")
            )
        except SalesboardError as e:
            click.echo(click.style(f"Embedding generation failed: {e.message}", fg='red'))
            raise SystemExit(1)

        if clear:
            click.echo(f"Cleared {result['cleared']} existing embeddings")
        click.echo(click.style(f"Stored {result['stored']} embeddings", fg='green', bold=True))

    @app.cli.command('text-to-sql')
    @click.argument('questions', nargs=-1, required=True)
    @click.option('--url', default=DEFAULT_TEXT_TO_SQL_URL, show_default=True, help='Text-to-SQL endpoint')
    def text_to_sql_command(questions, url):
        """Send each QUESTION to the streaming endpoint and print the events."""
        for question in questions:
            click.echo(click.style(f"\nQuestion: {question}", bold=True))
            try:
                with requests.post(url, json={'question': question}, stream=True, timeout=120) as response:
                    if response.status_code != 200:
                        click.echo(click.style(f"HTTP {response.status_code}: {response.text[:200]}", fg='red'))
                        continue
                    for event in iter_events(response.iter_lines(decode_unicode=True)):
                        print_event(event)
            except requests.RequestException as e:
                click.echo(click.style(f"Request failed: {e}", fg='red'))

    @app.cli.command('check-locations')
    @click.option('--match', 'match', default=None, help='Case-insensitive name fragment to look up')
    def check_locations_command(match):
        """List locations with order counts and revenue."""
        rows = (
            db_session.query(
                Location.name,
                Location.square_location_id,
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0)
            )
            .outerjoin(Order, Order.location_id == Location.square_location_id)
            .group_by(Location.id, Location.name, Location.square_location_id)
            .order_by(Location.name)
            .all()
        )

        click.echo('Available locations:')
        for name, square_id, order_count, revenue in rows:
            click.echo(f"  - {name} (ID: {square_id}, Orders: {order_count}, Revenue: {money_from_cents(revenue)})")

        if match:
            matches = db_session.query(Location).filter(
                func.lower(Location.name).contains(match.lower())
            ).all()
            click.echo(f"\nMatches for '{match}':")
            if not matches:
                click.echo(click.style('  none', fg='yellow'))
            for location in matches:
                click.echo(f"  - {location.name} (ID: {location.square_location_id})")

    @app.cli.command('todays-sales')
    @click.option('--tz', 'tz_name', default=None, help='Timezone defining "today" (default BUSINESS_TIMEZONE)')
    def todays_sales_command(tz_name):
        """Orders of today in a timezone, with line items and totals."""
        tz_name = tz_name or current_app.config.get('BUSINESS_TIMEZONE', 'UTC')
        tz = resolve_timezone(tz_name)
        start_dt, end_dt = local_day_range(tz_name)

        click.echo(f"Timezone: {tz_name}")
        click.echo(f"Query range (UTC): {start_dt.isoformat()} to {end_dt.isoformat()}\n")

        orders = (
            db_session.query(Order)
            .filter(Order.date >= start_dt, Order.date < end_dt)
            .order_by(Order.date.desc())
            .all()
        )

        click.echo(f"Found {len(orders)} sales for today")
        if not orders:
            return

        total_revenue = 0
        by_location = {}
        for index, order in enumerate(orders, start=1):
            amount = order.total_amount or 0
            total_revenue += amount
            location_name = order.location.name if order.location else 'Unknown Location'
            summary = by_location.setdefault(location_name, {'revenue': 0, 'count': 0})
            summary['revenue'] += amount
            summary['count'] += 1

            local_time = order.date.replace(tzinfo=timezone.utc).astimezone(tz).strftime('%H:%M:%S')
            click.echo(
                f"  {index}. {local_time} | {money_from_cents(amount)} | "
                f"{len(order.line_items)} items | {order.state} | {location_name}"
            )
            for line in order.line_items:
                click.echo(f"       {line.quantity} x {line.name} = {money_from_cents(line.total_price_amount)}")

        click.echo(f"\nTotal revenue: {money_from_cents(total_revenue)}")
        click.echo(f"Number of sales: {len(orders)}")
        click.echo('\nSales by location:')
        for name, data in sorted(by_location.items(), key=lambda kv: kv[1]['revenue'], reverse=True):
            click.echo(f"  {name}: {money_from_cents(data['revenue'])} ({data['count']} sales)")
