"""Positional argument marshalling for a cached signature."""
import logging
from collections.abc import Callable, Sequence
from typing import Any

from pgcall.signature import ParamKind

logger = logging.getLogger(__name__)


class ArgumentPreprocessor:
    """Apply per-position transforms described by a tuple of ParamKind.

    Array positions have in-memory arrays encoded as array literals; every
    other position passes through. Built once per cache entry.
    """

    def __init__(self, kinds: Sequence[ParamKind],
                 encode_array: Callable[[Any], Any]) -> None:
        self.kinds = tuple(kinds)
        self.encode_array = encode_array
        self.array_positions = tuple(
            i for i, kind in enumerate(self.kinds) if kind is ParamKind.ARRAY
        )

    @property
    def is_identity(self) -> bool:
        return not self.array_positions

    def apply(self, args: tuple) -> tuple:
        """Return the arguments with array positions encoded.
        """
        if self.is_identity:
            return args
        transformed = list(args)
        for i in self.array_positions:
            transformed[i] = self.encode_array(transformed[i])
        return tuple(transformed)

    def __repr__(self) -> str:
        return f'ArgumentPreprocessor(array_positions={self.array_positions})'
