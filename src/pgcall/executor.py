"""
Routine execution for a cached signature.

Typed signatures with parameters run through a prepared plan, created once
and reused for every invocation. Signatures declaring no parameters
(and untyped signatures) build a literal query from the quoted arguments.
"""
import logging
from typing import Any

from pgcall.engine.base import PreparedPlan, QueryEngine
from pgcall.signature import Signature

logger = logging.getLogger(__name__)


class Executor:
    """Bind arguments to a routine call and run it through the engine.
    """

    def __init__(self, engine: QueryEngine, signature: Signature) -> None:
        self.engine = engine
        self.routine = signature.name
        self.arg_types = signature.arg_types
        self.plan: PreparedPlan | None = None
        self.prepare_count = 0
        self.execute_count = 0

    @property
    def uses_plan(self) -> bool:
        return bool(self.arg_types)

    def prepare(self) -> PreparedPlan:
        """Prepare the plan if it has not been prepared yet.
        """
        if self.plan is None:
            self.plan = self.engine.prepare(self.routine, self.arg_types)
            self.prepare_count += 1
        return self.plan

    def literal_sql(self, args: tuple) -> str:
        """Build `select * from routine(lit, ...)` with quoted arguments.
        """
        literals = ','.join(self.engine.quote_literal(arg) for arg in args)
        return f'select * from {self.routine}({literals})'

    def invoke(self, args: tuple) -> list[dict[str, Any]]:
        """Run the routine and return its result rows.
        """
        if self.uses_plan:
            plan = self.prepare()
            rows = self.engine.execute(plan, args)
        else:
            rows = self.engine.execute_literal(self.literal_sql(args))
        self.execute_count += 1
        return rows
