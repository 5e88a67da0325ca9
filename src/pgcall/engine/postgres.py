"""
PostgreSQL query engine implementation.

Plans are server-side prepared statements:

    PREPARE pgcall_1(int, int) AS select * from generate_series($1, $2)
    EXECUTE pgcall_1(10, 19)

Values are interpolated client-side with a psycopg ClientCursor so that the
literals are coerced to the declared parameter types by the server, the same
way they would be for an untyped string literal.
"""
import itertools
import logging
import time
from collections.abc import Sequence
from functools import wraps
from typing import Any

import psycopg
from pgcall.engine.base import PreparedPlan, QueryEngine, register_engine
from pgcall.row import DictRowFactory
from pgcall.types import TypeConverter
from psycopg import sql as pgsql

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL statements, parameters and timing."""
    @wraps(func)
    def wrapper(self, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {args}')
        try:
            return func(self, operation, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            self.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


@register_engine('postgresql')
class PostgresEngine(QueryEngine):
    """Routine calls over a psycopg connection.
    """

    plan_prefix = 'pgcall'

    def __init__(self, connection: psycopg.Connection) -> None:
        self.connection = connection
        self._plan_ids = itertools.count(1)
        self.calls = 0
        self.time = 0.0

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port']

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    @dumpsql
    def _run(self, operation: str, params: Sequence[Any] | None = None) -> list[dict]:
        """Run one statement and fetch its rows, if any."""
        with psycopg.ClientCursor(self.connection, row_factory=DictRowFactory) as cursor:
            cursor.execute(operation, params)
            if cursor.description is None:
                return []
            return cursor.fetchall()

    def prepare(self, routine: str, arg_types: Sequence[str]) -> PreparedPlan:
        plan = PreparedPlan(name=f'{self.plan_prefix}_{next(self._plan_ids)}',
                            routine=routine, arg_types=tuple(arg_types))
        placeholders = ','.join(f'${i}' for i in range(1, len(plan.arg_types) + 1))
        self._run(f"prepare {plan.name}({','.join(plan.arg_types)}) "
                  f'as select * from {routine}({placeholders})')
        logger.debug(f'Prepared {plan.name} for {routine}({", ".join(plan.arg_types)})')
        return plan

    def execute(self, plan: PreparedPlan, args: Sequence[Any]) -> list[dict]:
        placeholders = ','.join(['%s'] * len(plan.arg_types))
        return self._run(f'execute {plan.name}({placeholders})',
                         TypeConverter.convert_params(args))

    def execute_literal(self, sql: str) -> list[dict]:
        return self._run(sql)

    def quote_literal(self, value: Any) -> str:
        return pgsql.Literal(TypeConverter.convert_value(value)).as_string(self.connection)
