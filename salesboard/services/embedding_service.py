"""
Schema embedding service.

Stores embedded schema documentation and retrieves the entries closest to a
question. On Postgres retrieval goes through the pgvector `match_schema`
function; other databases (the test suite's SQLite) rank in Python.
"""
import logging
import math
from typing import Dict, List, Optional, Sequence

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from salesboard.exceptions import SalesboardError
from salesboard.models import SchemaEmbedding
from salesboard.services.openai_client import get_openai_client
from salesboard.services.schema_docs import build_schema_docs

logger = logging.getLogger(__name__)

BATCH_SIZE = 100

MATCH_SCHEMA_SQL = text(
    'SELECT id, object_name, object_type, description, similarity '
    'FROM match_schema(CAST(:embedding AS vector), :threshold, :count)'
)


def to_vector_literal(embedding: Sequence[float]) -> str:
    """pgvector text form: [0.1,0.2,...]"""
    return '[' + ','.join(repr(float(x)) for x in embedding) + ']'


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has no magnitude."""
    if len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def embed_question(question: str) -> List[float]:
    """Embed a single question with the configured embedding model."""
    client = get_openai_client()
    vectors = client.embed([question], current_app.config['EMBEDDING_MODEL'])
    if not vectors:
        raise SalesboardError('Failed to embed question')
    return vectors[0]


def match_schema(session, embedding: Sequence[float], threshold: Optional[float] = None,
                 count: Optional[int] = None) -> List[Dict]:
    """
    Find the schema entries most similar to an embedding.

    Only entries with similarity strictly above the threshold are returned,
    best match first, at most `count` of them.

    Returns:
        List of {id, object_name, object_type, description, similarity}
    """
    if threshold is None:
        threshold = current_app.config.get('SCHEMA_MATCH_THRESHOLD', 0.0)
    if count is None:
        count = current_app.config.get('SCHEMA_MATCH_COUNT', 10)

    try:
        if session.get_bind().dialect.name == 'postgresql':
            rows = session.execute(MATCH_SCHEMA_SQL, {
                'embedding': to_vector_literal(embedding),
                'threshold': threshold,
                'count': count,
            }).mappings().all()
            matches = [dict(row) for row in rows]
        else:
            matches = _match_schema_in_python(session, embedding, threshold, count)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[T2SQL] Schema retrieval failed: {e}")
        raise SalesboardError(f"Schema retrieval failed: {getattr(e, 'orig', None) or e}")

    logger.info(f"[T2SQL] Retrieved {len(matches)} schema objects")
    return matches


def _match_schema_in_python(session, embedding, threshold, count):
    scored = []
    for entry in session.query(SchemaEmbedding).all():
        similarity = cosine_similarity(entry.embedding or [], embedding)
        if similarity > threshold:
            scored.append({
                'id': entry.id,
                'object_name': entry.object_name,
                'object_type': entry.object_type,
                'description': entry.description,
                'similarity': similarity,
            })
    scored.sort(key=lambda m: m['similarity'], reverse=True)
    return scored[:count]


def clear_embeddings(session) -> int:
    """Delete all stored schema embeddings. Returns the number removed."""
    removed = session.query(SchemaEmbedding).delete()
    session.commit()
    logger.info(f"[EMBED] Cleared {removed} existing embeddings")
    return removed


def store_embedding(session, object_name: str, object_type: str, description: str,
                    embedding: List[float]) -> SchemaEmbedding:
    """Insert or update one entry, keyed by object_name. Does not commit."""
    entry = session.query(SchemaEmbedding).filter_by(object_name=object_name).first()
    if entry is None:
        entry = SchemaEmbedding(object_name=object_name)
        session.add(entry)
    entry.object_type = object_type
    entry.description = description
    entry.embedding = list(embedding)
    return entry


def generate_embeddings(session, clear: bool = False, docs: Optional[List[Dict]] = None,
                        batch_size: int = BATCH_SIZE, progress=None) -> Dict[str, int]:
    """
    Embed the schema documentation catalogue and upsert it.

    Args:
        session: SQLAlchemy session
        clear: remove existing rows first
        docs: entries to embed; defaults to build_schema_docs()
        batch_size: texts per embeddings request
        progress: optional callable(done, total) invoked after each batch

    Returns:
        Dict with total, stored and cleared counts
    """
    docs = docs if docs is not None else build_schema_docs()
    client = get_openai_client()
    model = current_app.config['EMBEDDING_MODEL']

    cleared = clear_embeddings(session) if clear else 0
    stored = 0

    for start in range(0, len(docs), batch_size):
        batch = docs[start:start + batch_size]
        vectors = client.embed([d['description'] for d in batch], model)
        if len(vectors) != len(batch):
            raise SalesboardError(
                f"Embedding batch returned {len(vectors)} vectors for {len(batch)} inputs"
            )

        try:
            for doc, vector in zip(batch, vectors):
                store_embedding(session, doc['object_name'], doc['object_type'], doc['description'], vector)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise

        stored += len(batch)
        logger.info(f"[EMBED] Stored {stored}/{len(docs)} embeddings")
        if progress:
            progress(stored, len(docs))

    return {'total': len(docs), 'stored': stored, 'cleared': cleared}
