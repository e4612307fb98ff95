"""Query helpers shared by repositories"""

from sqlalchemy import String, cast, or_


def json_array_contains(column, value: str):
    """Match rows whose JSON list column contains the given string.

    Works on the serialized text so it behaves the same on SQLite and Postgres.
    """
    safe_value = value.replace('"', "").replace("%", "").replace("_", r"\_")
    return cast(column, String).like(f'%"{safe_value}"%', escape="\\")


def text_search(term: str, *columns):
    """Case-insensitive substring match across columns"""
    pattern = f"%{term.strip()}%"
    return or_(*[column.ilike(pattern) for column in columns])


def paginate(query, limit: int, offset: int):
    """Return (items, total) for a query"""
    total = query.order_by(None).count()
    return query.offset(offset).limit(limit).all(), total
