"""
Query engine factory for routine calls.
"""
from pgcall.engine.base import _ENGINE_REGISTRY
from pgcall.engine.base import PreparedPlan as PreparedPlan
from pgcall.engine.base import QueryEngine as QueryEngine
from pgcall.engine.base import register_engine as register_engine
from pgcall.engine.postgres import PostgresEngine as PostgresEngine


def _validate_dialect(dialect: str) -> None:
    """Raise ValueError if dialect is not registered."""
    if dialect not in _ENGINE_REGISTRY:
        available = list(_ENGINE_REGISTRY.keys())
        raise ValueError(f'Unsupported dialect: {dialect}. Available: {available}')


def get_engine_class(dialect: str) -> type[QueryEngine]:
    """Get the engine class for a dialect without instantiating."""
    _validate_dialect(dialect)
    return _ENGINE_REGISTRY[dialect]


def get_available_dialects() -> list[str]:
    """Return list of registered dialect names."""
    return list(_ENGINE_REGISTRY.keys())


def is_supported_dialect(dialect: str) -> bool:
    """Check if a dialect is supported."""
    return dialect in _ENGINE_REGISTRY
