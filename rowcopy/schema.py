"""Table column introspection."""

from typing import List
from rowcopy.connectors.postgres import PostgresConnector
from rowcopy.exceptions import ConfigurationError


class SchemaIntrospector:
    """Read table column lists from the information schema."""

    def __init__(self, connector: PostgresConnector):
        """Initialize SchemaIntrospector.

        Args:
            connector: PostgreSQL database connector instance
        """
        self.connector = connector

    def columns(self, table_name: str) -> List[str]:
        """Get the ordered column names of a table.

        Args:
            table_name: Name of the table

        Returns:
            Column names in table order

        Raises:
            ConfigurationError: If the table has no columns (does not exist)
        """
        columns = self.connector.list_columns(table_name)
        if not columns:
            raise ConfigurationError(f"Table '{table_name}' not found or has no columns")
        return list(columns)


def intersect_columns(destination: List[str], source: List[str]) -> List[str]:
    """Columns present in both tables, in destination order.

    Args:
        destination: Destination table columns
        source: Source table columns

    Returns:
        Shared column names ordered as in the destination table
    """
    source_set = set(source)
    return [column for column in destination if column in source_set]
