"""
Call database routines from a compact textual signature.

    cn = pgcall.connect('postgresql', config=config)
    pgcall.call_one(cn, 'abs(int)', -42)                          # 42
    pgcall.call_all(cn, 'generate_series(int,int)', 10, 19)       # [10, ..., 19]
    pgcall.call(cn, 'pg_get_keywords()', context=ResultContext.MULTIPLE)

All calls can be made either as:
- Module functions: pgcall.call_one(cn, signature, *args)
- ConnectionWrapper methods: cn.call_one(signature, *args)
"""
__version__ = '0.1.0'

from typing import Any

from pgcall.connection import ConnectionWrapper, connect
from pgcall.dispatch import Dispatcher
from pgcall.engine import PostgresEngine, PreparedPlan, QueryEngine
from pgcall.exceptions import CallError, ContextError, ExecutionError
from pgcall.exceptions import ExecutionFailure, ParseError, PreparationError
from pgcall.exceptions import PreparationFailure
from pgcall.options import CallOptions
from pgcall.shaping import ResultContext
from pgcall.signature import Signature, parse_signature


def call(cn: ConnectionWrapper, signature: str, *args: Any,
         context: ResultContext) -> Any:
    """Call a routine and shape its result for the calling context.
    """
    return cn.call(signature, *args, context=context)


def call_one(cn: ConnectionWrapper, signature: str, *args: Any) -> Any:
    """Call a routine expecting a single value or record.

    Returns None if no rows. Raises ContextError if more than one row.
    """
    return cn.call_one(signature, *args)


def call_all(cn: ConnectionWrapper, signature: str, *args: Any) -> list[Any]:
    """Call a routine and return all of its values or records.
    """
    return cn.call_all(signature, *args)


def perform(cn: ConnectionWrapper, signature: str, *args: Any) -> None:
    """Call a routine for its side effects.
    """
    cn.perform(signature, *args)


__all__ = [
    'connect',
    'ConnectionWrapper',
    'CallOptions',
    'Dispatcher',
    'QueryEngine',
    'PostgresEngine',
    'PreparedPlan',
    'ResultContext',
    'Signature',
    'parse_signature',
    'call',
    'call_one',
    'call_all',
    'perform',
    'CallError',
    'ParseError',
    'ContextError',
    'PreparationError',
    'ExecutionError',
    'PreparationFailure',
    'ExecutionFailure',
]
