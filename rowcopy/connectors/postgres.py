"""PostgreSQL database connector with retry logic."""
import time
from contextlib import contextmanager
from typing import Dict, List, Tuple, Any, Optional, Union

import psycopg2
import psycopg2.extras
from psycopg2 import sql

from ..exceptions import DatabaseExecutionError
from ..logger import setup_logger

Query = Union[str, sql.Composable]


def table_identifier(table_name: str) -> sql.Identifier:
    """
    Quote a table name, keeping an optional schema prefix.

    Args:
        table_name: Plain ("orders") or schema-qualified ("archive.orders") name

    Returns:
        Identifier safe to compose into a statement
    """
    return sql.Identifier(*table_name.split("."))


class PostgresConnector:
    """PostgreSQL connector used as the SQL executor for table copies."""

    def __init__(self, config: Dict[str, Any], max_retries: int = 3, retry_delay: int = 5):
        """
        Initialize PostgreSQL connector.

        Args:
            config: Database connection configuration
            max_retries: Maximum number of connection retry attempts
            retry_delay: Delay between retry attempts (seconds)
        """
        self.config = config
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.conn = None
        self.logger = setup_logger("postgres_connector")

    def _get_connection_params(self) -> Dict[str, Any]:
        """
        Build connection parameters from config.

        Returns:
            psycopg2 connection parameters dictionary
        """
        params = {}
        if "host" in self.config:
            params["host"] = self.config["host"]
        if "port" in self.config:
            params["port"] = self.config["port"]
        if "database" in self.config:
            params["dbname"] = self.config["database"]  # psycopg2 uses 'dbname' not 'database'
        if "user" in self.config:
            params["user"] = self.config["user"]
        if "password" in self.config:
            params["password"] = self.config["password"]
        if self.config.get("timeout"):
            params["connect_timeout"] = self.config["timeout"]

        return params

    def connect(self):
        """Establish connection to PostgreSQL with retry logic."""
        conn_params = self._get_connection_params()

        for attempt in range(1, self.max_retries + 1):
            try:
                self.logger.info(f"Connecting to PostgreSQL (attempt {attempt}/{self.max_retries})...")
                self.conn = psycopg2.connect(**conn_params)
                self._register_json_as_text()
                self.logger.info("Successfully connected to PostgreSQL")
                return
            except Exception as e:
                self.logger.error(f"Connection attempt {attempt} failed: {e}")
                if attempt < self.max_retries:
                    self.logger.info(f"Retrying in {self.retry_delay} seconds...")
                    time.sleep(self.retry_delay)
                else:
                    self.logger.error("Max retries reached. Connection failed.")
                    raise

    def _register_json_as_text(self):
        """Fetch json and jsonb values as their text representation.

        Decoded dicts and lists cannot be written back as SQL literals, the raw
        text can.
        """
        psycopg2.extras.register_default_json(self.conn, loads=lambda value: value)
        psycopg2.extras.register_default_jsonb(self.conn, loads=lambda value: value)

    def disconnect(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            self.logger.info("Disconnected from PostgreSQL")

    def _require_connection(self):
        if not self.conn:
            raise RuntimeError("Not connected to database")

    def execute_query(self, query: Query, params: Optional[Tuple] = None) -> List[Tuple]:
        """
        Execute a SELECT query and return results.

        Args:
            query: SQL query to execute
            params: Optional query parameters

        Returns:
            List of result tuples

        Raises:
            DatabaseExecutionError: If the statement fails
        """
        self._require_connection()

        try:
            with self.conn.cursor() as cursor:
                cursor.execute(query, params)
                rows = cursor.fetchall()
            # Release the snapshot so long copies don't hold a transaction open
            self.conn.commit()
            return rows
        except psycopg2.Error as e:
            self.conn.rollback()
            raise DatabaseExecutionError(str(e).strip(), details=getattr(e, "pgcode", None)) from e

    def execute_update(self, query: Query, params: Optional[Tuple] = None) -> int:
        """
        Execute an INSERT/UPDATE/DELETE or SET statement and commit it.

        Args:
            query: SQL statement to execute
            params: Optional query parameters

        Returns:
            Number of affected rows

        Raises:
            DatabaseExecutionError: If the statement fails
        """
        self._require_connection()

        try:
            with self.conn.cursor() as cursor:
                cursor.execute(query, params)
                self.conn.commit()
                return cursor.rowcount
        except psycopg2.Error as e:
            self.conn.rollback()
            raise DatabaseExecutionError(str(e).strip(), details=getattr(e, "pgcode", None)) from e

    def max_value(self, table_name: str, column: str) -> int:
        """
        Get the maximum value of a column.

        Args:
            table_name: Name of the table
            column: Column to aggregate

        Returns:
            Maximum value, or 0 when the table is empty
        """
        query = sql.SQL("SELECT MAX({}) FROM {}").format(
            sql.Identifier(column), table_identifier(table_name)
        )
        result = self.execute_query(query)
        if not result or result[0][0] is None:
            return 0
        return int(result[0][0])

    def list_columns(self, table_name: str) -> List[str]:
        """
        Get the ordered column names of a table.

        Args:
            table_name: Plain or schema-qualified table name

        Returns:
            Column names in ordinal order
        """
        if "." in table_name:
            schema, name = table_name.split(".", 1)
            query = """
                SELECT column_name FROM information_schema.columns
                WHERE table_schema = %s AND table_name = %s
                ORDER BY ordinal_position
            """
            params = (schema, name)
        else:
            query = """
                SELECT column_name FROM information_schema.columns
                WHERE table_schema = current_schema() AND table_name = %s
                ORDER BY ordinal_position
            """
            params = (table_name,)

        return [row[0] for row in self.execute_query(query, params)]

    @contextmanager
    def foreign_key_checks_disabled(self):
        """
        Disable foreign key enforcement for the statements run inside the block.

        Foreign keys are enforced by system triggers which do not fire while the
        session runs as a replica. The default role is restored on exit, also when
        the block raises.
        """
        self.execute_update("SET session_replication_role = replica")
        try:
            yield
        except Exception:
            # Keep the error raised inside the block if restoring fails as well
            try:
                self.execute_update("SET session_replication_role = DEFAULT")
            except Exception as restore_error:
                self.logger.error(f"Failed to restore session_replication_role: {restore_error}")
            raise
        self.execute_update("SET session_replication_role = DEFAULT")

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
