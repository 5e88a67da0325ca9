"""
Session handling for routine calls.

This module provides:
1. The `connect()` function for opening a routine-call session
2. The `ConnectionWrapper` class owning the session's dispatcher and plan cache
3. Engine creation and management through a thread-safe registry
4. The `routines` proxy for calls without declared parameter types

The ConnectionWrapper is the primary client, providing methods like:
- call(signature, *args, context=...) - Call a routine, shaping for the context
- call_one(signature, *args) - Single value or record (None if no rows)
- call_all(signature, *args) - List of values or records
- perform(signature, *args) - Call for side effects only
"""
import atexit
import logging
import threading
from collections.abc import Callable
from dataclasses import fields
from typing import Any, Self

import sqlalchemy as sa
from pgcall.cache import PlanCache
from pgcall.dispatch import Dispatcher
from pgcall.engine import QueryEngine, get_engine_class
from pgcall.options import CallOptions
from pgcall.shaping import ResultContext
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'ConnectionWrapper',
    'RoutineProxy',
    'connect',
    'configure_connection',
    'create_url_from_options',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options: CallOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert CallOptions to SQLAlchemy URL.
    """
    if options.drivername == 'postgresql':
        query = {'application_name': options.appname}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)

        return url_creator(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port,
            database=options.database,
            query=query
        )

    raise ValueError(f'Unsupported database type: {options.drivername}')


def get_engine_for_options(options: CallOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines never pool: each session holds its own server connection, which
    owns the session's prepared plans.
    """
    key = str(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        url = create_url_from_options(options)

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class UntypedRoutine:
    """A routine reached through `ConnectionWrapper.routines`.

    Arguments are quoted as literals and the server picks the overload.
    """

    def __init__(self, dispatcher: Dispatcher, name: str) -> None:
        self.dispatcher = dispatcher
        self.name = name

    def __call__(self, *args: Any) -> Any:
        return self.dispatcher.call_untyped(self.name, *args, context=ResultContext.SINGLE)

    def all(self, *args: Any) -> list[Any]:
        return self.dispatcher.call_untyped(self.name, *args, context=ResultContext.MULTIPLE)

    def perform(self, *args: Any) -> None:
        self.dispatcher.call_untyped(self.name, *args, context=ResultContext.NONE)

    def __repr__(self) -> str:
        return f'<routine {self.name}>'


class RoutineProxy:
    """Attribute-style access to routines: `cn.routines.pi()`.

    Schema-qualified routines are reached with `cn.routines['myschema.fn']`.
    """

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def __getattr__(self, name: str) -> UntypedRoutine:
        if name.startswith('_'):
            raise AttributeError(name)
        return UntypedRoutine(self._dispatcher, name)

    def __getitem__(self, name: str) -> UntypedRoutine:
        return UntypedRoutine(self._dispatcher, name)


class ConnectionWrapper:
    """Routine-call session over a SQLAlchemy connection.

    This class:
    1. Owns the session's dispatcher and plan cache (created with the session,
       cleared when it closes)
    2. Tracks query execution counts and timing through its query engine
    3. Supports context manager protocol for explicit resource management
    4. Delegates other attribute access to the SQLAlchemy connection object
    """

    def __init__(self, sa_connection: sa.engine.Connection | None = None,
                 options: CallOptions | None = None,
                 query_engine: QueryEngine | None = None) -> None:
        """Initialize a session wrapper
        """
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine if sa_connection else None
        self.options = options
        self.dbapi_connection = sa_connection.connection if sa_connection else None
        if query_engine is None:
            drivername = options.drivername if options else 'postgresql'
            query_engine = get_engine_class(drivername)(self.dbapi_connection.driver_connection)
        self.query_engine = query_engine
        self.dispatcher = Dispatcher(query_engine)
        self.routines = RoutineProxy(self.dispatcher)

    def __enter__(self) -> Self:
        """Support for context manager protocol
        """
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        """Close the session when exiting the context manager
        """
        try:
            self.close()
            logger.debug('Closed connection via context manager')
        except Exception as e:
            logger.warning(f'Error closing connection in __exit__: {e}')

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the SQLAlchemy connection.
        """
        if name in {'sa_connection', 'dbapi_connection'}:
            raise AttributeError(name)
        return getattr(self.sa_connection, name)

    @property
    def plan_cache(self) -> PlanCache:
        return self.dispatcher.cache

    @property
    def calls(self) -> int:
        return getattr(self.query_engine, 'calls', 0)

    @property
    def time(self) -> float:
        return getattr(self.query_engine, 'time', 0.0)

    def call(self, signature: str, *args: Any, context: ResultContext) -> Any:
        """Call a routine and shape its result for the calling context.
        """
        return self.dispatcher.call(signature, *args, context=context)

    def call_one(self, signature: str, *args: Any) -> Any:
        """Call a routine expecting a single value or record.

        Returns None if the routine returns no rows. Raises ContextError if
        it returns more than one.
        """
        return self.dispatcher.call(signature, *args, context=ResultContext.SINGLE)

    def call_all(self, signature: str, *args: Any) -> list[Any]:
        """Call a routine and return all of its values or records.
        """
        return self.dispatcher.call(signature, *args, context=ResultContext.MULTIPLE)

    def perform(self, signature: str, *args: Any) -> None:
        """Call a routine for its side effects, discarding the result.
        """
        self.dispatcher.call(signature, *args, context=ResultContext.NONE)

    def clear_cache(self) -> None:
        """Forget all cached plans for this session.
        """
        self.dispatcher.clear()

    def commit(self) -> None:
        """Commit the driver connection (only needed with autocommit off).
        """
        self.dbapi_connection.commit()

    def rollback(self) -> None:
        """Roll back the driver connection (only needed with autocommit off).
        """
        self.dbapi_connection.rollback()

    def close(self) -> None:
        """Close the session and drop its plan cache
        """
        self.dispatcher.clear()
        if self.sa_connection is not None and not self.sa_connection.closed:
            self.sa_connection.close()
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')


def configure_connection(sa_connection: sa.engine.Connection, options: CallOptions) -> None:
    """Configure a SQLAlchemy connection for routine calls.
    """
    if options.autocommit:
        sa_connection.execution_options(isolation_level='AUTOCOMMIT')


@load_options(cls=CallOptions)
def connect(options: CallOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Open a routine-call session.

    Args:
        options: Can be:
                - CallOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        ConnectionWrapper owning a fresh plan cache
    """
    if isinstance(options, CallOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=CallOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options)

    sa_connection = engine.connect()
    configure_connection(sa_connection, options)

    return ConnectionWrapper(sa_connection, options)
