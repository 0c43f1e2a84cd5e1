"""
Schema documentation catalogue.

Builds plain-language descriptions of the reporting tables, their columns and
relationships from the SQLAlchemy metadata. The entries are embedded and
stored in schema_embeddings so the text-to-SQL pipeline can retrieve the
parts of the schema relevant to a question.
"""
from typing import Dict, List

from salesboard.database import Base

TABLE, COLUMN, RELATIONSHIP, INDEX = 'table', 'column', 'relationship', 'index'

# Tables that never belong in generated queries
EXCLUDED_TABLES = {'schema_embeddings', 'alert_rules', 'notifications'}

TABLE_PURPOSES = {
    'profiles': 'User profile information including email and personal details',
    'categories': 'Product categories for organizing items in the catalog',
    'locations': 'Physical business locations with address and timezone information',
    'items': 'Product catalog containing all available items with pricing and category',
    'orders': 'Customer purchase orders with transaction details, amounts, and status',
    'line_items': 'Individual items within each order with quantities and pricing details',
    'conversations': 'Chat conversation threads between users and AI assistant',
    'chat_messages': 'Individual messages within conversations including user queries and AI responses',
}

RELATIONSHIP_PURPOSES = {
    ('orders', 'locations'): 'Links each order to the location where it was placed',
    ('line_items', 'orders'): 'Associates line items with their parent order transaction',
    ('line_items', 'items'): 'References the catalog item for pricing and product details',
    ('items', 'categories'): 'Categorizes items for organization and filtering',
    ('chat_messages', 'conversations'): 'Groups messages into conversation threads',
}

KEY_COLUMNS = ('id', 'email', 'name', 'date', 'totalAmount', 'quantity', 'state')

DATE_PATTERNS_DOC = (
    'Common date calculation patterns for PostgreSQL queries in sales analytics. '
    'CRITICAL: For "last [day of week]" queries (e.g., "last Wednesday", "last Monday"), '
    'calculate the exact date of the most recent occurrence of that weekday. '
    'PostgreSQL day of week: EXTRACT(DOW FROM date) returns 0=Sunday, 1=Monday, 2=Tuesday, '
    '3=Wednesday, 4=Thursday, 5=Friday, 6=Saturday. '
    'Formula for last occurrence of a weekday: CURRENT_DATE - ((EXTRACT(DOW FROM CURRENT_DATE)::int '
    '- target_dow + 7) % 7 + CASE WHEN EXTRACT(DOW FROM CURRENT_DATE) = target_dow THEN 7 ELSE 0 END) '
    'where target_dow is the target day number (0-6). '
    "NEVER use (CURRENT_DATE - INTERVAL '1 day') AND EXTRACT(DOW FROM date) = X as this only works "
    'if yesterday was that day. '
    'Always calculate the exact date using the formula above for accurate results.'
)

MONEY_PATTERNS_DOC = (
    'Monetary amounts ("totalAmount", "unitPriceAmount", "totalPriceAmount", "taxAmount", '
    '"discountAmount") are stored as integer CENTS. Divide by 100.0 to report dollars, '
    'e.g. SUM(o."totalAmount") / 100.0 AS revenue. Only orders with state = \'COMPLETED\' '
    'count as sales.'
)


def column_purpose(name: str, type_name: str) -> str:
    """Describe what a column holds from its name, falling back to its type."""
    if name == 'id':
        return 'Unique identifier for this record'
    if name.endswith('Id'):
        return f"Foreign key reference to {name[:-2]} table"
    if name in ('createdAt', 'created_at'):
        return 'Timestamp when record was created'
    if name in ('updatedAt', 'updated_at'):
        return 'Timestamp when record was last updated'
    if name == 'email':
        return 'Email address'
    if name == 'name':
        return 'Display name'
    if 'Amount' in name:
        return 'Monetary amount in cents'
    if 'quantity' in name:
        return 'Quantity or count'
    if name == 'date':
        return 'Transaction date and time (UTC)'
    if name in ('state', 'status'):
        return 'Current status or state'
    if 'Price' in name:
        return 'Price value in cents'
    if name == 'currency':
        return 'Currency code (e.g., USD)'
    if name == 'category':
        return 'Category classification'
    if name == 'timezone':
        return 'IANA timezone name of the location'

    type_name = type_name.upper()
    if 'CHAR' in type_name or 'TEXT' in type_name:
        return f"Text field for {name}"
    if 'INT' in type_name:
        return f"Numeric value for {name}"
    if 'DATE' in type_name or 'TIME' in type_name:
        return f"Date/time value for {name}"
    if 'BOOL' in type_name:
        return f"Boolean flag for {name}"
    if 'JSON' in type_name:
        return f"JSON data for {name}"
    return f"Field storing {name} information"


def table_description(table) -> str:
    parts = [
        f"Table: {table.name}",
        f"Description: {TABLE_PURPOSES.get(table.name, f'Stores {table.name} data')}",
    ]
    key_fields = [c.name for c in table.columns if c.primary_key or c.unique or c.name in KEY_COLUMNS]
    if key_fields:
        parts.append(f"Key fields: {', '.join(key_fields)}")
    parts.append(f"Columns: {', '.join(c.name for c in table.columns)}")
    return '. '.join(parts)


def column_description(table, column) -> str:
    type_name = str(column.type)
    parts = [
        f"Column: {table.name}.\"{column.name}\"",
        f"Type: {type_name}{' (optional)' if column.nullable else ''}",
        f"Purpose: {column_purpose(column.name, type_name)}",
    ]
    if column.unique:
        parts.append('Unique')
    if column.primary_key:
        parts.append('Primary key')
    return '. '.join(parts)


def relationship_description(table, fk) -> str:
    target = fk.column.table.name
    purpose = RELATIONSHIP_PURPOSES.get(
        (table.name, target), f"Establishes relationship between {table.name} and {target}"
    )
    return '. '.join([
        f"Relationship: {table.name} -> {target}",
        f"Join: {table.name}.\"{fk.parent.name}\" = {target}.\"{fk.column.name}\"",
        f"Purpose: {purpose}",
    ])


def build_schema_docs(metadata=None) -> List[Dict[str, str]]:
    """
    Generate documentation entries for every reporting table.

    Returns:
        List of {object_name, object_type, description}
    """
    import salesboard.models  # noqa: F401  (registers tables on the metadata)

    metadata = metadata or Base.metadata
    docs = []

    for table in metadata.sorted_tables:
        if table.name in EXCLUDED_TABLES:
            continue

        docs.append({
            'object_name': table.name,
            'object_type': TABLE,
            'description': table_description(table),
        })

        for column in table.columns:
            docs.append({
                'object_name': f"{table.name}.{column.name}",
                'object_type': COLUMN,
                'description': column_description(table, column),
            })

        for fk in table.foreign_keys:
            docs.append({
                'object_name': f"{table.name}.{fk.parent.name}->{fk.column.table.name}",
                'object_type': RELATIONSHIP,
                'description': relationship_description(table, fk),
            })

    docs.append({
        'object_name': 'query_pattern_date_calculations',
        'object_type': INDEX,
        'description': DATE_PATTERNS_DOC,
    })
    docs.append({
        'object_name': 'query_pattern_money',
        'object_type': INDEX,
        'description': MONEY_PATTERNS_DOC,
    })
    return docs
