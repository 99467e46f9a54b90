"""Shared test helpers."""
import pytest
from psycopg2 import sql


def render_sql(query):
    """Render a composed statement without a database connection."""
    if isinstance(query, str):
        return query
    if isinstance(query, sql.Composed):
        return "".join(render_sql(part) for part in query.seq)
    if isinstance(query, sql.SQL):
        return query.string
    if isinstance(query, sql.Identifier):
        return ".".join(f'"{name}"' for name in query.strings)
    if isinstance(query, sql.Literal):
        return repr(query.wrapped)
    raise TypeError(f"Cannot render {query!r}")


def sql_values(query):
    """Values composed into a statement, NULL tokens as None."""
    if isinstance(query, sql.Composed):
        values = []
        for part in query.seq:
            values.extend(sql_values(part))
        return values
    if isinstance(query, sql.Literal):
        return [query.wrapped]
    if isinstance(query, sql.SQL) and query.string == "NULL":
        return [None]
    return []


@pytest.fixture
def render():
    """Fixture exposing render_sql."""
    return render_sql
