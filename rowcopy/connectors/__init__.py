"""Database connectors used as the SQL executor."""
from .postgres import PostgresConnector, table_identifier

__all__ = ["PostgresConnector", "table_identifier"]
