"""Row factory producing name-keyed rows for routine results."""
from numbers import Number
from typing import Any

from pgcall.types import postgres_types


class DictRowFactory:
    """Row factory for psycopg that returns dictionary rows.

    Column order follows the cursor description. Numeric values are cast
    based on their PostgreSQL type code so that `numeric` results come back
    as floats rather than Decimals.
    """

    def __init__(self, cursor: Any) -> None:
        """Initialize with cursor to extract column metadata.

        Args:
            cursor: Database cursor with description attribute
        """
        self.fields = [
            (c.name, postgres_types.get(c.type_code))
            for c in (cursor.description or [])
        ]

    def __call__(self, values: tuple) -> dict:
        """Convert a row tuple to a dictionary.
        """
        return {
            name: cast(value) if isinstance(value, Number) and cast is not None else value
            for (name, cast), value in zip(self.fields, values)
        }
