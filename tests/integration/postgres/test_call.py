"""
Routine calls against a real PostgreSQL server.
"""
import datetime

import psycopg
import pytest
from pgcall.exceptions import ContextError, ParseError

pytestmark = pytest.mark.postgres


class TestSingleValue:
    """Single-value, single-row routines"""

    def test_no_arguments(self, pg_conn):
        assert pg_conn.call_one('pi()') == pytest.approx(3.14159, abs=1e-5)

    def test_bad_argument_count(self, pg_conn):
        with pytest.raises(ParseError, match='expected 0 argument'):
            pg_conn.call_one('pi()', 42)

        with pytest.raises(ParseError, match="Can't parse 'pi'"):
            pg_conn.call_one('pi', 42)

    def test_simple_types(self, pg_conn):
        assert pg_conn.call_one('abs(int)', -42) == 42
        assert pg_conn.call_one('abs(float)', -42.5) == 42.5
        assert pg_conn.call_one('bit_length(text)', 'jose') == 32

    def test_multi_word_types(self, pg_conn):
        assert pg_conn.call_one('abs(double precision)', -42.5) == 42.5
        assert pg_conn.call_one('bit_length(character varying(90))', 'jose') == 32

    def test_schema_qualified(self, pg_conn):
        assert pg_conn.call_one('pg_catalog.abs(int)', -7) == 7

    def test_multiple_arguments(self, pg_conn):
        assert pg_conn.call_one('trunc(numeric,int)', 42.4382, 2) == pytest.approx(42.43)

    def test_types_from_strings(self, pg_conn):
        assert pg_conn.call_one('host(inet)', '192.168.1.5/24') == '192.168.1.5'
        assert str(pg_conn.call_one('network(inet)', '192.168.1.5/24')) == '192.168.1.0/24'
        assert pg_conn.call_one('abbrev(cidr)', '10.1.0.0/16') == '10.1/16'
        assert pg_conn.call_one('numnode(tsquery)', '(fat & rat) | cat') == 5

    def test_sequence(self, pg_conn):
        pg_conn.query_engine.execute_literal('create temp sequence seqn1 start with 42')
        assert pg_conn.call_one('nextval(regclass)', 'seqn1') == 42
        assert pg_conn.call_one('nextval(text)', 'seqn1') == 43

    def test_array_result(self, pg_conn):
        assert pg_conn.call_one('string_to_array(text, text)', 'xx~^~yy~^~zz', '~^~') == ['xx', 'yy', 'zz']


class TestEngineErrors:
    """Database errors reach the caller with their original type"""

    def test_invalid_input(self, pg_conn):
        with pytest.raises(psycopg.errors.InvalidTextRepresentation, match='invalid input syntax for type integer') as excinfo:
            pg_conn.call_one('abs(int)', '-42.5')
        assert excinfo.value.__notes__ == ['while calling abs(int)']

    def test_undefined_function(self, pg_conn):
        with pytest.raises(psycopg.errors.UndefinedFunction, match='function abs\\(text\\) does not exist'):
            pg_conn.call_one('abs(text)', -42.5)
        assert len(pg_conn.plan_cache) == 0

    def test_undefined_type(self, pg_conn):
        with pytest.raises(psycopg.errors.UndefinedObject, match='type "nonesuchtype" does not exist'):
            pg_conn.call_one('abs(nonesuchtype)', -42.5)

    def test_session_usable_after_error(self, pg_conn):
        with pytest.raises(psycopg.errors.UndefinedFunction):
            pg_conn.call_one('abs(text)', 'x')
        assert pg_conn.call_one('abs(int)', -1) == 1


class TestArrays:
    """Array literal and in-memory array arguments"""

    def test_literal_string(self, pg_conn):
        assert pg_conn.call_one('array_dims(text[])', '{a,b,c}') == '[1:3]'

    def test_list(self, pg_conn):
        assert pg_conn.call_one('array_dims(text[])', ['a', 'b', 'c']) == '[1:3]'

    def test_nested_list(self, pg_conn):
        assert pg_conn.call_one('array_dims(text[])', [[1, 2, 3], [4, 5, 6]]) == '[1:2][1:3]'

    def test_array_cat(self, pg_conn):
        # psycopg decodes array results to lists, not the {1,2,3,4,5,6} text form
        assert pg_conn.call_one('array_cat(int[], int[])', [1, 2, 3], [4, 5, 6]) == [1, 2, 3, 4, 5, 6]


class TestMultiRow:
    """Single-value, multi-row routines"""

    def test_unnest(self, pg_conn):
        assert pg_conn.call_all('unnest(int[])', '{11,12,13}') == [11, 12, 13]

    def test_generate_series(self, pg_conn):
        assert pg_conn.call_all('generate_series(int,int)', 10, 19) == list(range(10, 20))

    def test_single_context_rejects_many_rows(self, pg_conn):
        with pytest.raises(ContextError):
            pg_conn.call_one('generate_series(int,int)', 10, 19)

    def test_step(self, pg_conn):
        assert pg_conn.call_all('generate_series(int,int,int)', 10, 19, 4) == [10, 14, 18]

    def test_timestamps(self, pg_conn):
        result = pg_conn.call_all('generate_series(timestamp,timestamp,interval)',
                                  '2008-03-01', '2008-03-02', '12 hours')
        assert result == [
            datetime.datetime(2008, 3, 1, 0, 0),
            datetime.datetime(2008, 3, 1, 12, 0),
            datetime.datetime(2008, 3, 2, 0, 0),
        ]

    def test_empty(self, pg_conn):
        assert pg_conn.call_all('generate_series(int,int)', 5, 1) == []
        assert pg_conn.call_one('generate_series(int,int)', 5, 1) is None


class TestRecords:
    """Record-returning routines"""

    def test_keywords(self, pg_conn):
        records = pg_conn.call_all('pg_get_keywords()')
        assert len(records) > 200
        row = records[0]
        assert 'word' in row
        assert 'catcode' in row
        assert 'catdesc' in row
        assert row.word == row['word']

    def test_single_record(self, create_routines):
        records = create_routines.call_all('f1()')
        assert len(records) == 1
        assert records[0].r1 == '10'
        assert records[0].r2 == 11

        record = create_routines.call_one('f1()')
        assert record == {'r1': '10', 'r2': 11}

    def test_multi_record(self, create_routines):
        records = create_routines.call_all('f2()')
        assert len(records) == 5
        assert records[-1].r1 == '5'
        assert records[-1].r2 == 6


class TestPlanCache:

    def test_plan_prepared_once(self, pg_conn):
        for i in range(10):
            assert pg_conn.call_one('abs(int)', -i) == i
        entry = pg_conn.plan_cache.get('abs(int)/1')
        assert entry.executor.prepare_count == 1
        assert entry.executor.execute_count == 10

    def test_variadic_spellings_share_plan(self, create_routines):
        cn = create_routines
        assert cn.call_one('vary(int...)', 1, 2, 3) == 6
        assert cn.call_one('vary(int, int, int)', 4, 5, 6) == 15
        assert len(cn.plan_cache) == 1
        entry = cn.plan_cache.get('vary(int,int,int)/3')
        assert entry.executor.prepare_count == 1
        assert entry.executor.execute_count == 2

    def test_clear_cache(self, pg_conn):
        pg_conn.call_one('abs(int)', -1)
        pg_conn.clear_cache()
        assert len(pg_conn.plan_cache) == 0
        assert pg_conn.call_one('abs(int)', -1) == 1


class TestRoutineProxy:
    """Calls without declared parameter types"""

    def test_call(self, pg_conn):
        assert pg_conn.routines.pi() == pytest.approx(3.14159, abs=1e-5)
        assert pg_conn.routines.abs(-42) == 42

    def test_all(self, pg_conn):
        assert pg_conn.routines.generate_series.all(1, 3) == [1, 2, 3]

    def test_quoting(self, pg_conn):
        assert pg_conn.routines.bit_length("it's") == 32


if __name__ == '__main__':
    __import__('pytest').main([__file__])
