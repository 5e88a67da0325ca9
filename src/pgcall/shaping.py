"""
Result shaping by calling context.

A routine's result set is turned into the value shape the call site expects:

    context    single-column result      other results
    --------   ----------------------    ----------------------
    MULTIPLE   [value, value, ...]       [record, record, ...]
    SINGLE     value (None if no rows)   record (None if no rows)
    NONE       None                      None

Single-column mode applies when the first row has exactly one column named
after the routine (e.g. `abs` for `abs(int)`). Records are attrdicts over all
columns. A SINGLE call returning more than one row raises ContextError.
"""
import logging
from enum import Enum, auto
from typing import Any

from pgcall.exceptions import ContextError
from pgcall.signature import Signature

from libb import attrdict

logger = logging.getLogger(__name__)


class ResultContext(Enum):
    """What the call site does with the routine's result."""
    NONE = auto()
    SINGLE = auto()
    MULTIPLE = auto()


def is_single_column(row: dict, column_name: str) -> bool:
    """Check whether a row is a bare routine value rather than a record.
    """
    return len(row) == 1 and column_name in row


def shape_result(rows: list[dict], signature: Signature, context: ResultContext) -> Any:
    """Shape a result set for the calling context.

    Parameters
        rows: Result rows in engine order
        signature: Signature of the call that produced the rows
        context: Calling context supplied by the call site

    Returns
        None, a value, a record, or a list of values or records

    Raises
        ContextError: If SINGLE context receives more than one row
    """
    if context is ResultContext.NONE:
        return None

    if not rows:
        return [] if context is ResultContext.MULTIPLE else None

    if context is ResultContext.SINGLE and len(rows) > 1:
        raise ContextError(f"'{signature}' returned {len(rows)} rows where a single value was expected")

    column = signature.column_name
    if is_single_column(rows[0], column):
        values = [row[column] for row in rows]
    else:
        values = [attrdict(row) for row in rows]

    logger.debug(f'Shaped {len(rows)} row(s) from {signature.key} for {context.name} context')

    if context is ResultContext.MULTIPLE:
        return values
    return values[0]
