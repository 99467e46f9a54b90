"""rowcopy - chunked bulk copy of rows between PostgreSQL tables."""

__version__ = "1.0.0"
