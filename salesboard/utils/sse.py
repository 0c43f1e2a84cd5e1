"""Server-sent events helpers."""
import json
from datetime import date, datetime
from decimal import Decimal

EVENT_TYPES = ('status', 'schema', 'sql', 'results', 'error', 'complete')

SSE_HEADERS = {
    'Cache-Control': 'no-cache',
    'Connection': 'keep-alive',
    'X-Accel-Buffering': 'no',
}


def _default(obj):
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def format_event(event_type: str, **fields) -> str:
    """Encode one event as an SSE `data:` frame. None-valued fields are dropped."""
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    payload = {'type': event_type}
    payload.update({k: v for k, v in fields.items() if v is not None})
    return f"data: {json.dumps(payload, default=_default)}\n\n"


def iter_events(lines):
    """
    Decode SSE frames from an iterable of text lines.

    Yields the parsed JSON payload of each `data:` line; blank lines and
    other fields are ignored.
    """
    for line in lines:
        if not line:
            continue
        if isinstance(line, bytes):
            line = line.decode('utf-8')
        line = line.strip()
        if line.startswith('data: '):
            yield json.loads(line[len('data: '):])
