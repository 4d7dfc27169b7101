"""
Guarded update helper with IS DISTINCT FROM optimization.

Updates a single row only when at least one of the supplied values actually
differs from what is stored, so a no-op reconciliation never touches
updated_at and the returned flag doubles as the "was updated" count.
"""

from typing import Any

from sqlalchemy import or_, update
from sqlalchemy.engine import Connection


def update_if_distinct(
    conn: Connection,
    table: type,
    key_column: str,
    key_value: Any,
    values: dict[str, Any],
) -> bool:
    """
    Update one row only where some value IS DISTINCT FROM the stored one.

    Args:
        conn: Active database connection (within transaction)
        table: SQLAlchemy ORM table class (e.g., Reservation)
        key_column: Column identifying the row (usually "id")
        key_value: Value of key_column for the target row
        values: Columns to set

    Returns:
        bool: True if a row was written

    Example:
        >>> with engine.begin() as conn:
        ...     changed = update_if_distinct(
        ...         conn, Reservation, "id", reservation_id, {"guest_name": "Jane"}
        ...     )

    Technical Details:
        - IS DISTINCT FROM checks NULL-safe inequality (rendered as IS NOT on SQLite)
        - Row count of the UPDATE tells whether anything changed
    """
    if not values:
        return False

    distinct_check = or_(
        *(getattr(table, column).is_distinct_from(value) for column, value in values.items())
    )

    stmt = (
        update(table)
        .where(getattr(table, key_column) == key_value)
        .where(distinct_check)
        .values(**values)
    )

    result = conn.execute(stmt)
    return bool(result.rowcount)
