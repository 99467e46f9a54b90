"""Chunked copy of rows from one table to another.

Rows are copied in windows of ids so the source table is never locked as a
whole and memory use stays bounded. Each window is either copied with a single
``INSERT ... SELECT`` or, when a translation mapping is active, read into
memory, translated and bulk loaded in batches.
"""

import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, NamedTuple, Optional, Sequence

from psycopg2 import sql

from rowcopy.bulk_loader import BulkLoader
from rowcopy.connectors.postgres import PostgresConnector, table_identifier
from rowcopy.exceptions import ConfigurationError, DataIntegrityError
from rowcopy.logger import setup_logger
from rowcopy.notifier import DEFAULT_SUBJECT, safe_notify
from rowcopy.schema import SchemaIntrospector, intersect_columns
from rowcopy.translations import TranslationMapping, TranslationRegistry, translate_row

DEFAULT_CHUNK_SIZE = 100000
DEFAULT_BATCH_SIZE = 5000


class IdWindow(NamedTuple):
    """Half-open id range [start, end)."""
    start: int
    end: int

    @property
    def size(self) -> int:
        return max(self.end - self.start, 0)


@dataclass(frozen=True)
class CopyJob:
    """Parameters of one copy run."""
    source_table: str
    destination_table: str
    id_column: str = "id"
    chunk_size: int = DEFAULT_CHUNK_SIZE
    starting_id: int = 1
    translation_key: Optional[str] = None

    def __post_init__(self):
        if not self.source_table or not self.destination_table:
            raise ConfigurationError("Source and destination tables are required")
        if self.chunk_size < 1:
            raise ConfigurationError(f"Chunk size must be a positive integer, got {self.chunk_size}")
        if self.starting_id < 1:
            raise ConfigurationError(f"Starting id must be a positive integer, got {self.starting_id}")


@dataclass
class RunOutcome:
    """Result of a copy run."""
    success: bool
    message: str
    windows: List[IdWindow] = field(default_factory=list)
    rows_copied: int = 0
    error: Optional[Exception] = None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


def plan_windows(starting_id: int, chunk_size: int, max_id: int,
                 sample_max_id: Callable[[], int]) -> Iterator[IdWindow]:
    """Yield the id windows of a copy.

    Windows advance by ``chunk_size`` while their end stays within ``max_id``.
    When the next window would reach the known max id, ``sample_max_id`` is
    called again so rows appended during the copy are picked up. The last window
    always ends at ``max_id + 1`` and is yielded even when the table is empty.

    The generator is lazy: each window is processed by the caller before the
    next one is planned.

    Args:
        starting_id: First id to copy
        chunk_size: Number of ids per window
        max_id: Max id of the source table when the copy starts
        sample_max_id: Callable returning the current max id

    Yields:
        IdWindow instances in increasing order
    """
    window = IdWindow(starting_id, starting_id + chunk_size)

    while window.end <= max_id:
        yield window
        window = IdWindow(window.end, window.end + chunk_size)
        if window.end >= max_id:
            # Other processes may still be writing to the source table
            max_id = sample_max_id()

    # Window ends are exclusive, widen the last one to include max_id itself
    yield IdWindow(window.start, max(max_id + 1, window.start))


class TableCopier:
    """Copy rows between tables in id windows."""

    def __init__(self, connector: PostgresConnector, notifier: Any, logger: Any = None,
                 translations: Optional[TranslationRegistry] = None,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 introspector: Optional[SchemaIntrospector] = None,
                 bulk_loader: Optional[BulkLoader] = None,
                 on_window_complete: Optional[Callable[[CopyJob, IdWindow, int], None]] = None,
                 subject: str = DEFAULT_SUBJECT):
        """Initialize TableCopier.

        Args:
            connector: Database connector executing all statements
            notifier: Object with ``notify(subject, body)`` used for the final message
            logger: Logger instance
            translations: Registry of translation mappings
            batch_size: Rows per bulk insert statement when translating
            introspector: Schema introspector (defaults to one over ``connector``)
            bulk_loader: Bulk loader (defaults to one over ``connector``)
            on_window_complete: Called with (job, window, rows) after each window
            subject: Notification subject
        """
        if batch_size < 1:
            raise ConfigurationError(f"Batch size must be a positive integer, got {batch_size}")
        self.connector = connector
        self.notifier = notifier
        self.logger = logger or setup_logger("rowcopy")
        self.translations = translations or TranslationRegistry()
        self.batch_size = batch_size
        self.introspector = introspector or SchemaIntrospector(connector)
        self.bulk_loader = bulk_loader or BulkLoader(connector)
        self.on_window_complete = on_window_complete
        self.subject = subject

    def run(self, job: CopyJob) -> RunOutcome:
        """Copy all rows of ``job`` and send one final notification.

        Errors are not raised: they are logged, notified and reported in the
        returned outcome. Windows copied before a failure stay in the
        destination table.

        Args:
            job: Copy parameters

        Returns:
            RunOutcome describing success or failure
        """
        windows: List[IdWindow] = []
        rows_copied = 0

        try:
            mapping = self._resolve_translation(job)

            source_columns = self.introspector.columns(job.source_table)
            destination_columns = self.introspector.columns(job.destination_table)
            columns = self._select_columns(job, source_columns, destination_columns, mapping)

            max_id = self._max_id(job)
            self.logger.info(
                f"Copying {job.source_table} to {job.destination_table}: "
                f"ids {job.starting_id:,} to {max_id:,} in chunks of {job.chunk_size:,}"
            )

            for window in plan_windows(job.starting_id, job.chunk_size, max_id,
                                       lambda: self._max_id(job)):
                copied = self._run_copy_chunk(job, window, columns, mapping)
                windows.append(window)
                rows_copied += copied
                if self.on_window_complete:
                    self.on_window_complete(job, window, copied)

        except Exception as err:
            message = getattr(err, "message", None) or str(err) or err.__class__.__name__
            self.logger.error(f"Copy from {job.source_table} to {job.destination_table} failed: {message}")
            self.logger.error(traceback.format_exc())
            safe_notify(self.notifier, self.subject, message, self.logger)
            return RunOutcome(False, message, windows, rows_copied, error=err)

        message = f"All rows have been copied from {job.source_table} to {job.destination_table}."
        self.logger.info(message)
        safe_notify(self.notifier, self.subject, message, self.logger)
        return RunOutcome(True, message, windows, rows_copied)

    def _resolve_translation(self, job: CopyJob) -> Optional[TranslationMapping]:
        if not job.translation_key:
            return None

        mapping = self.translations.mapping(job.translation_key)
        if mapping is None:
            raise ConfigurationError(
                f'Aborting, translation mapping could not be found with key "{job.translation_key}".'
            )
        if not mapping:
            raise ConfigurationError(f'Aborting, translation mapping "{job.translation_key}" is empty.')
        return mapping

    def _select_columns(self, job: CopyJob, source_columns: List[str],
                        destination_columns: List[str],
                        mapping: Optional[TranslationMapping]) -> Optional[List[str]]:
        """Columns to copy, or None when every column is copied as is."""
        if destination_columns == source_columns and not mapping:
            return None

        columns = intersect_columns(destination_columns, source_columns)
        if not columns:
            raise ConfigurationError(
                f"Tables {job.source_table} and {job.destination_table} have no columns in common"
            )

        for column in (mapping or {}):
            if column not in columns:
                self.logger.warning(f"Translated column '{column}' is not copied, its rules are ignored")

        return columns

    def _max_id(self, job: CopyJob) -> int:
        return self.connector.max_value(job.source_table, job.id_column)

    def _run_copy_chunk(self, job: CopyJob, window: IdWindow, columns: Optional[List[str]],
                        mapping: Optional[TranslationMapping]) -> int:
        """Copy one window and return the number of rows inserted."""
        log_message = f" copying rows with ids {window.start:,} to {window.end:,}."
        self.logger.info("Started" + log_message)

        if mapping:
            copied = self._translate_copy_rows(job, window, columns, mapping)
        else:
            statement = self._build_insert_statement(job, columns)
            with self.connector.foreign_key_checks_disabled():
                copied = self.connector.execute_update(statement, (window.start, window.end))

        self.logger.info("Finished" + log_message)
        return copied

    def _window_filter(self, job: CopyJob) -> sql.Composed:
        id_column = sql.Identifier(job.id_column)
        return sql.SQL("WHERE {id} >= %s AND {id} < %s ORDER BY {id} ASC").format(id=id_column)

    def _build_insert_statement(self, job: CopyJob, columns: Optional[List[str]]) -> sql.Composed:
        """INSERT ... SELECT statement for one window, bounds left as parameters."""
        if columns is None:
            return sql.SQL("INSERT INTO {destination} SELECT * FROM {source} {filter}").format(
                destination=table_identifier(job.destination_table),
                source=table_identifier(job.source_table),
                filter=self._window_filter(job),
            )

        column_list = sql.SQL(", ").join(sql.Identifier(column) for column in columns)
        return sql.SQL(
            "INSERT INTO {destination} ({columns}) SELECT {columns} FROM {source} {filter}"
        ).format(
            destination=table_identifier(job.destination_table),
            columns=column_list,
            source=table_identifier(job.source_table),
            filter=self._window_filter(job),
        )

    def _build_select_statement(self, job: CopyJob, columns: List[str]) -> sql.Composed:
        return sql.SQL("SELECT {columns} FROM {source} {filter}").format(
            columns=sql.SQL(", ").join(sql.Identifier(column) for column in columns),
            source=table_identifier(job.source_table),
            filter=self._window_filter(job),
        )

    def _translate_copy_rows(self, job: CopyJob, window: IdWindow, columns: List[str],
                             mapping: TranslationMapping) -> int:
        """Read, translate and bulk load the rows of one window."""
        rows = self.connector.execute_query(
            self._build_select_statement(job, columns), (window.start, window.end)
        )

        translated_rows = [self._translate(row, columns, mapping) for row in rows]

        copied = 0
        for batch in _batches(translated_rows, self.batch_size):
            with self.connector.foreign_key_checks_disabled():
                copied += self.bulk_loader.bulk_insert(job.destination_table, columns, batch)
        return copied

    @staticmethod
    def _translate(row: Sequence[Any], columns: List[str],
                   mapping: TranslationMapping) -> tuple:
        values = translate_row(row, columns, mapping)
        if len(values) != len(columns):
            # Bulk inserts need exactly one value per column
            raise DataIntegrityError(
                "Aborting, row values count does not match column count: "
                + ",".join(str(value) for value in values)
            )
        return values


def _batches(rows: List[tuple], size: int) -> Iterator[List[tuple]]:
    for offset in range(0, len(rows), size):
        yield rows[offset:offset + size]
