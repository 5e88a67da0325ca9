"""
Fixtures for PostgreSQL routine call integration tests.
"""
import logging

import pytest

logger = logging.getLogger(__name__)

F1 = """
create or replace function f1(out r1 text, out r2 int) language sql as $$
    select '10'::text, 11
$$
"""

F2 = """
create or replace function f2() returns table (r1 text, r2 int) language sql as $$
    select i::text, i + 1 from generate_series(1, 5) as i
$$
"""

VARY = """
create or replace function vary(variadic xs int[]) returns int language sql as $$
    select sum(x)::int from unnest(xs) as x
$$
"""


@pytest.fixture
def create_routines(pg_conn):
    """Create the test routines f1, f2 and vary, dropping them afterwards."""
    engine = pg_conn.query_engine
    for ddl in (F1, F2, VARY):
        engine.execute_literal(ddl)
    yield pg_conn
    for routine in ('f1()', 'f2()', 'vary(int[])'):
        try:
            engine.execute_literal(f'drop function if exists {routine}')
        except Exception as e:
            logger.warning(f'Error dropping {routine}: {e}')
