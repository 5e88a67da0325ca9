"""
Routine call exception classes.

Only parse-stage and shape-stage errors are raised by this package. Errors
from the query engine propagate unchanged; the dispatcher attaches the
originating signature as an exception note.
"""
import psycopg


class CallError(Exception):
    """Base class for all routine call errors.
    """


class ParseError(CallError):
    """Malformed signature or argument count mismatch.
    """


class ContextError(CallError):
    """Single value expected but the routine returned several rows.
    """


class PreparationError(CallError):
    """Engine rejected a routine/type combination while preparing a plan.

    Raised by QueryEngine implementations that do not surface driver errors;
    PostgresEngine lets psycopg errors propagate instead.
    """


class ExecutionError(CallError):
    """Engine failed while executing a bound call.

    For QueryEngine implementations without a driver exception hierarchy of
    their own; PostgresEngine raises psycopg errors.
    """


# Catch-groups spanning psycopg errors and errors from other engines
PreparationFailure = (
    psycopg.ProgrammingError,
    psycopg.DataError,
    PreparationError,
    )

ExecutionFailure = (
    psycopg.DatabaseError,
    ExecutionError,
    )
