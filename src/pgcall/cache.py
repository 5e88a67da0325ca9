"""
Plan cache for routine calls.

Two levels of lookup map a call site to its dispatch entry:

1. Parser, exact raw signature text and argument count (fast path for repeated
   identical call sites)
2. Canonical signature key, so spellings differing only in whitespace, case
   or variadic notation share one entry, one prepared plan and one
   preprocessor

Entries are write-once and never evicted; the number of distinct signatures
is bounded by the calling code, not by data. Each cache belongs to one
session (see `Dispatcher`).
"""
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from pgcall.executor import Executor
from pgcall.preprocess import ArgumentPreprocessor
from pgcall.signature import Signature, parse_signature

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Dispatch entry for one canonical signature."""
    signature: Signature
    preprocessor: ArgumentPreprocessor
    executor: Executor

    @property
    def routine(self) -> str:
        return self.signature.name


class PlanCache:
    """Thread-safe get-or-create mapping from signatures to entries.
    """

    def __init__(self) -> None:
        self._by_raw: dict[tuple[Callable, str, int], CacheEntry] = {}
        self._by_key: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def get_or_create(self, raw: str, nargs: int,
                      factory: Callable[[Signature], CacheEntry],
                      parse: Callable[[str, int], Signature] = parse_signature) -> CacheEntry:
        """Get the entry for a call site, creating it on first use.

        Args:
            raw: Signature text as written at the call site
            nargs: Number of arguments supplied
            factory: Builds a new entry from a parsed signature
            parse: Signature parser

        Returns
            CacheEntry shared by all spellings of the canonical signature

        Raises
            Whatever `parse` or `factory` raise; nothing is cached then
        """
        raw_key = (parse, raw, nargs)
        entry = self._by_raw.get(raw_key)
        if entry is not None:
            return entry

        with self._lock:
            entry = self._by_raw.get(raw_key)
            if entry is not None:
                return entry

            signature = parse(raw, nargs)
            entry = self._by_key.get(signature.key)
            if entry is None:
                logger.debug(f'Cache miss for {signature.key}, creating entry')
                entry = factory(signature)
                self._by_key[signature.key] = entry
            else:
                logger.debug(f'Cache hit for {signature.key} via new spelling {raw!r}')
            self._by_raw[raw_key] = entry
            return entry

    def get(self, key: str) -> CacheEntry | None:
        """Look up an entry by canonical key."""
        return self._by_key.get(key)

    def aliases(self) -> int:
        """Number of distinct raw call sites seen."""
        return len(self._by_raw)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._by_raw.clear()
            self._by_key.clear()
            logger.debug('Plan cache cleared')

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, key: str) -> bool:
        return key in self._by_key
