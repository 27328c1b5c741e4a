"""
Partial-update query building for the plan stores.

Maps the fields present in an update record to ``column = <placeholder>``
assignments so the stores never hand-assemble SET clauses. Column names
are checked against an allow-list; values always travel as parameters.
"""

from typing import Any, Callable, Dict, List, Tuple

# Domain field -> plans column
PLAN_COLUMNS: Dict[str, str] = {
    "category": "category_id",
    "name": "name",
    "description": "description",
    "cpu": "cpu",
    "ram": "ram",
    "storage": "storage",
    "bandwidth": "bandwidth",
    "os": "os",
    "price": "price_pkr",
    "is_active": "is_active",
    "theme_color": "theme_color",
    "label": "label",
}

Placeholder = Callable[[int], str]


def dollar_placeholder(index: int) -> str:
    """asyncpg style: $1, $2, ..."""
    return f"${index}"


def qmark_placeholder(index: int) -> str:
    """sqlite style: ?"""
    return "?"


class RawSQL(str):
    """A SQL expression written verbatim into an assignment (e.g. CURRENT_TIMESTAMP)."""


def build_update(
    table: str,
    changes: Dict[str, Any],
    where: Dict[str, Any],
    placeholder: Placeholder,
    columns: Dict[str, str] = PLAN_COLUMNS,
    touch: Tuple[str, ...] = ("updated_at",),
) -> Tuple[str, List[Any]]:
    """
    Build an UPDATE statement for the fields present in ``changes``.

    Args:
        table: Target table
        changes: Domain field -> new value; only these fields are assigned
        where: Column -> value equality conditions (ANDed)
        placeholder: Renders the Nth parameter marker
        columns: Allowed domain fields and their column names
        touch: Columns always set to CURRENT_TIMESTAMP

    Returns:
        (sql, params) ready for the driver

    Raises:
        ValueError: unknown field or empty WHERE clause
    """
    if not where:
        raise ValueError("Refusing to build an UPDATE without a WHERE clause")

    assignments: List[str] = []
    params: List[Any] = []

    for field_name, value in changes.items():
        if field_name not in columns:
            raise ValueError(f"Unknown field for {table}: {field_name}")
        column = columns[field_name]
        if isinstance(value, RawSQL):
            assignments.append(f"{column} = {value}")
            continue
        params.append(value)
        assignments.append(f"{column} = {placeholder(len(params))}")

    for column in touch:
        assignments.append(f"{column} = CURRENT_TIMESTAMP")

    if not assignments:
        raise ValueError("Nothing to update")

    conditions: List[str] = []
    for column, value in where.items():
        params.append(value)
        conditions.append(f"{column} = {placeholder(len(params))}")

    sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE {' AND '.join(conditions)}"
    return sql, params
