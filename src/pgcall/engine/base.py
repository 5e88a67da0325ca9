"""
Base query engine interface for routine calls.

The engine is the only component that talks to the database. It prepares
typed plans, executes them with bound values, runs literal SQL and knows how
the database spells literals. Everything above it (signature parsing, plan
caching, result shaping) is database-agnostic.
"""
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pgcall.types import encode_array_literal

if TYPE_CHECKING:
    from pgcall.options import CallOptions

# Registry of dialect name -> engine class
_ENGINE_REGISTRY: dict[str, type['QueryEngine']] = {}


def register_engine(dialect: str):
    """Decorator to register an engine class for a dialect.

    Usage:
        @register_engine('postgresql')
        class PostgresEngine(QueryEngine):
            ...
    """
    def decorator(cls: type['QueryEngine']) -> type['QueryEngine']:
        _ENGINE_REGISTRY[dialect] = cls
        return cls
    return decorator


@dataclass(frozen=True, slots=True)
class PreparedPlan:
    """Opaque handle for a parsed, parameter-typed, reusable query."""
    name: str
    routine: str
    arg_types: tuple[str, ...]


class QueryEngine(ABC):
    """Collaborator executing routine calls against a database.
    """

    @abstractmethod
    def prepare(self, routine: str, arg_types: Sequence[str]) -> PreparedPlan:
        """Prepare `select * from routine($1, ...)` with typed parameters.

        Args:
            routine: Routine name, possibly schema-qualified
            arg_types: Ordered parameter type names
        """

    @abstractmethod
    def execute(self, plan: PreparedPlan, args: Sequence[Any]) -> list[dict]:
        """Execute a prepared plan with positional arguments.

        Returns
            Rows as column name -> value dictionaries, in engine order
        """

    @abstractmethod
    def execute_literal(self, sql: str) -> list[dict]:
        """Execute SQL text without parameters.
        """

    @abstractmethod
    def quote_literal(self, value: Any) -> str:
        """Quote a value as a SQL literal, NULL for None.
        """

    def encode_array_literal(self, value: Any) -> Any:
        """Encode an in-memory array as the engine's textual array literal.
        """
        return encode_array_literal(value)

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return option fields that must be set for this engine."""
        return []

    @classmethod
    def validate_options(cls, options: 'CallOptions') -> None:
        """Validate options for this engine.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')
