"""
Value handling for routine arguments and results.

This module provides:
- TypeConverter: Convert NumPy/Pandas values to values the driver can bind
- encode_array_literal: Encode in-memory arrays as PostgreSQL array literals
- postgres_types: Map PostgreSQL type codes to Python types for result casting
"""
import datetime
import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd
from psycopg.postgres import types as pg_types

logger = logging.getLogger(__name__)

NUMPY_FLOAT_TYPES = (np.floating,)
NUMPY_INT_TYPES = (np.integer, np.unsignedinteger)
_EPOCH = datetime.datetime(1970, 1, 1)


def _convert_numpy_value(val: Any) -> float | int | datetime.datetime | None:
    """Convert NumPy value to Python type."""
    if isinstance(val, np.floating) and np.isnan(val):
        return None

    if isinstance(val, np.datetime64) and np.isnat(val):
        return None

    if isinstance(val, (np.floating, np.integer, np.unsignedinteger)):
        return val.item()

    if isinstance(val, np.datetime64):
        seconds = val.astype('datetime64[s]').astype(int)
        return _EPOCH + datetime.timedelta(seconds=int(seconds))

    return val


class TypeConverter:
    """Convert scientific-stack values to plain Python values for binding.

    Strings are never touched: a routine argument of 'null' is the text
    'null', not SQL NULL.
    """

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert a single value to a driver-compatible format."""
        if value is None or isinstance(value, str):
            return value

        if isinstance(value, type(pd.NaT)):
            return None

        if isinstance(value, (*NUMPY_FLOAT_TYPES, *NUMPY_INT_TYPES, np.datetime64)):
            return _convert_numpy_value(value)

        if isinstance(value, np.bool_):
            return bool(value)

        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()

        if value is pd.NA:
            return None

        return value

    @staticmethod
    def convert_params(params: Sequence[Any] | None) -> tuple | None:
        """Convert positional parameters for binding."""
        if params is None:
            return None
        return tuple(TypeConverter.convert_value(v) for v in params)


def is_array_value(value: Any) -> bool:
    """Check whether a value is an in-memory array rather than a literal.
    """
    return isinstance(value, list | tuple | np.ndarray)


def _quote_array_element(value: Any) -> str:
    value = TypeConverter.convert_value(value)
    if value is None:
        return 'NULL'
    if is_array_value(value):
        return encode_array_literal(value)
    text = str(value).replace('\\', '\\\\').replace('"', '\\"')
    return f'"{text}"'


def encode_array_literal(value: Any, delimiter: str = ',') -> Any:
    """Encode a (possibly nested) in-memory array as an array literal.

    Values that are not arrays (already-encoded strings, None) are returned
    unchanged.

    >>> encode_array_literal([1, 2, 3])
    '{"1","2","3"}'
    >>> encode_array_literal([['a', None], ['b"c', 'd']])
    '{{"a",NULL},{"b\\\\"c","d"}}'
    >>> encode_array_literal('{1,2,3}')
    '{1,2,3}'
    """
    if not is_array_value(value):
        return value
    if isinstance(value, np.ndarray):
        value = value.tolist()
    return '{' + delimiter.join(_quote_array_element(v) for v in value) + '}'


# Type Resolution - PostgreSQL type codes -> Python types

_oid = lambda x: pg_types.get(x).oid

postgres_types: dict[int, type] = {}

for v in [_oid('bigint'), _oid('int2'), _oid('int4'), _oid('int8'), _oid('integer')]:
    postgres_types[v] = int

for v in [_oid('float4'), _oid('float8'), _oid('double precision'), _oid('numeric')]:
    postgres_types[v] = float

for v in [_oid('bool'), _oid('boolean')]:
    postgres_types[v] = bool
