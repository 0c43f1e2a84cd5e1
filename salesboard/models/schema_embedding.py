"""Schema embedding model used for text-to-SQL context retrieval."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from salesboard.database import Base


class SchemaEmbedding(Base):
    """
    Embedded description of a database object (table, column, relationship).

    On Postgres the embedding column is a pgvector VECTOR(1536) created by
    sql/001_schema_embeddings.sql; the ORM reads and writes it as a JSON-style
    list of floats, which pgvector accepts in its text form.
    """

    __tablename__ = 'schema_embeddings'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    object_name = Column(String, nullable=False, unique=True, index=True)
    object_type = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    embedding = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<SchemaEmbedding(object_type='{self.object_type}', object_name='{self.object_name}')>"
