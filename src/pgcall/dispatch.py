"""
Call dispatch: signature -> cache entry -> execution -> shaped result.

    raw signature --parse--> Signature --get_or_create--> CacheEntry
        --preprocess/invoke--> rows --shape(context)--> value

Engine errors propagate with their original type and message; the raw
signature of the failing call is attached as an exception note.
"""
import logging
from typing import Any

from pgcall.cache import CacheEntry, PlanCache
from pgcall.engine.base import QueryEngine
from pgcall.exceptions import ContextError, ParseError
from pgcall.executor import Executor
from pgcall.preprocess import ArgumentPreprocessor
from pgcall.shaping import ResultContext, shape_result
from pgcall.signature import Signature, untyped_signature

logger = logging.getLogger(__name__)


class Dispatcher:
    """Session-scoped routine dispatcher owning its plan cache.
    """

    def __init__(self, engine: QueryEngine, cache: PlanCache | None = None) -> None:
        self.engine = engine
        self.cache = cache if cache is not None else PlanCache()

    def create_entry(self, signature: Signature) -> CacheEntry:
        """Build the dispatch entry for a new canonical signature.

        Typed signatures with parameters are prepared here, so a rejected
        routine/type combination never reaches the cache.
        """
        executor = Executor(self.engine, signature)
        if executor.uses_plan:
            executor.prepare()
        preprocessor = ArgumentPreprocessor(signature.param_kinds,
                                            self.engine.encode_array_literal)
        logger.debug(f'Created entry for {signature.key}: {preprocessor}')
        return CacheEntry(signature=signature, preprocessor=preprocessor,
                          executor=executor)

    def call(self, signature: str, *args: Any, context: ResultContext) -> Any:
        """Call a routine described by a typed signature.

        Args:
            signature: e.g. 'generate_series(int, int)' or 'concat_ws(text, text...)'
            *args: Positional routine arguments
            context: How the call site uses the result

        Returns
            Result shaped for the context, see `pgcall.shaping`
        """
        try:
            entry = self.cache.get_or_create(signature, len(args), self.create_entry)
            return self._dispatch(entry, args, context)
        except (ParseError, ContextError):
            raise
        except Exception as exc:
            exc.add_note(f'while calling {signature}')
            raise

    def call_untyped(self, name: str, *args: Any, context: ResultContext) -> Any:
        """Call a routine by name, letting the engine resolve parameter types.
        """
        try:
            entry = self.cache.get_or_create(name, len(args), self.create_entry,
                                             parse=untyped_signature)
            return self._dispatch(entry, args, context)
        except (ParseError, ContextError):
            raise
        except Exception as exc:
            exc.add_note(f'while calling {name}')
            raise

    def _dispatch(self, entry: CacheEntry, args: tuple, context: ResultContext) -> Any:
        if not entry.preprocessor.is_identity:
            args = entry.preprocessor.apply(args)
        logger.debug(f'Calling {entry.signature.key} with {args}')
        rows = entry.executor.invoke(args)
        return shape_result(rows, entry.signature, context)

    def clear(self) -> None:
        """Drop all cached entries."""
        self.cache.clear()
