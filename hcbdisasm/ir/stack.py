"""Symbolic model of the per-routine value stack.

The virtual machine reserves ``local_count`` slots when a routine starts and
grows an operand area above them.  Instructions never state the stack depth
explicitly, so the analyser has to move ``cur_top`` in lock-step with the real
machine: a single missed push or pop shifts every later slot name without any
decoding error.  Slots ``[0, local_count)`` are the declared locals and slots
``[local_count, cur_top)`` the live operands.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..errors import InvalidSlotError, StackUnderflow
from .model import NamedVariant, Statement, StatementArena, Variant

logger = logging.getLogger(__name__)


class StackAnalyzer:
    """Turn push/pop opcodes into named values."""

    def __init__(
        self,
        local_count: int,
        args_count: int,
        arena: Optional[StatementArena] = None,
    ) -> None:
        self.local_count = local_count
        self.args_count = args_count
        self.cur_top = local_count
        self.arena = arena if arena is not None else StatementArena()
        self.local_variables: List[NamedVariant] = [
            NamedVariant.from_local(index) for index in range(local_count)
        ]

    # ------------------------------------------------------------------
    # push helpers
    # ------------------------------------------------------------------
    def _push(self, variant: Variant) -> None:
        self._push_named(NamedVariant.from_local(self.cur_top, variant))

    def _push_named(self, named: NamedVariant) -> None:
        # Popped slots are reset rather than removed, so the list may already
        # hold an entry at ``cur_top``.
        if self.cur_top < len(self.local_variables):
            self.local_variables[self.cur_top] = named
        else:
            self.local_variables.append(named)
        self.cur_top += 1

    def push_nil(self) -> None:
        self._push(Variant.nil())

    def push_true(self) -> None:
        self._push(Variant.true())

    def push_int(self, value: int) -> None:
        self._push(Variant.int_(value))

    def push_float(self, value: float) -> None:
        self._push(Variant.float_(value))

    def push_string(self, value: str) -> None:
        self._push(Variant.string(value))

    def push_global(self, slot: int) -> None:
        self._push_named(NamedVariant.from_global(slot))

    def push_stack(self, offset: int) -> None:
        self._push_named(self.get(offset))

    def push_top(self) -> None:
        logger.warning("push_top encountered; the reference VM never seems to emit it")
        if self.cur_top == 0:
            raise StackUnderflow("push_top(): stack underflow")
        self._push_named(self.local_variables[self.cur_top - 1])

    def push_return_value(self) -> None:
        self._push_named(NamedVariant.from_return_value())

    def push_expr(self, statement: Statement) -> None:
        self._push_named(self.arena.allocate(statement))

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def pop(self) -> NamedVariant:
        if self.cur_top <= self.local_count:
            raise StackUnderflow(
                f"pop(): stack underflow (top={self.cur_top}, locals={self.local_count})"
            )
        self.cur_top -= 1
        value = self.local_variables[self.cur_top]
        self.local_variables[self.cur_top] = NamedVariant.from_local(self.cur_top)
        return value

    def get(self, index: int) -> NamedVariant:
        """Resolve a local (``index >= 0``) or argument (``index <= -2``) slot."""

        if 0 <= index < self.local_count:
            return self.local_variables[index]
        if index < -1:
            return NamedVariant.from_arg(index)
        logger.error("invalid stack index %d (locals=%d)", index, self.local_count)
        raise InvalidSlotError(f"invalid stack index {index}")

    def current_stack_top(self) -> int:
        return self.cur_top

    @property
    def depth(self) -> int:
        """Number of live operand entries above the locals."""

        return self.cur_top - self.local_count

    def describe(self) -> str:
        return f"stack top={self.cur_top} locals={self.local_count} args={self.args_count}"


__all__ = ["StackAnalyzer"]
