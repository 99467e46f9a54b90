"""Multi-row INSERT builder for fast bulk loading."""

from typing import Any, List, Sequence
from psycopg2 import sql

from rowcopy.connectors.postgres import PostgresConnector, table_identifier
from rowcopy.exceptions import DataIntegrityError

NULL = sql.SQL("NULL")


def build_bulk_insert(table_name: str, columns: Sequence[str],
                      rows: Sequence[Sequence[Any]]) -> sql.Composed:
    """Build a single INSERT statement covering every row.

    Values are composed as escaped literals; ``None`` becomes ``NULL``.

    Args:
        table_name: Destination table
        columns: Ordered column names
        rows: Value tuples aligned to ``columns``

    Returns:
        Composed INSERT ... VALUES statement

    Raises:
        DataIntegrityError: If a row's value count differs from the column count
    """
    values = []
    for row in rows:
        if len(row) != len(columns):
            raise DataIntegrityError(
                f"Row has {len(row)} values but {len(columns)} columns were given",
                details=repr(row),
            )
        values.append(
            sql.SQL("({})").format(
                sql.SQL(", ").join(NULL if value is None else sql.Literal(value) for value in row)
            )
        )

    return sql.SQL("INSERT INTO {} ({}) VALUES {}").format(
        table_identifier(table_name),
        sql.SQL(", ").join(sql.Identifier(column) for column in columns),
        sql.SQL(", ").join(values),
    )


class BulkLoader:
    """Insert batches of rows with one statement per batch."""

    def __init__(self, connector: PostgresConnector):
        """Initialize BulkLoader.

        Args:
            connector: PostgreSQL database connector
        """
        self.connector = connector

    def bulk_insert(self, table_name: str, columns: List[str],
                    rows: Sequence[Sequence[Any]]) -> int:
        """Insert rows into a table with a single multi-row statement.

        The caller sizes ``rows`` to stay below the server's statement limits.

        Args:
            table_name: Destination table
            columns: Ordered column names
            rows: Value tuples aligned to ``columns``

        Returns:
            Number of rows inserted
        """
        if not rows:
            return 0

        statement = build_bulk_insert(table_name, columns, rows)
        self.connector.execute_update(statement)
        return len(rows)
