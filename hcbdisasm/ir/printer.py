"""Utilities for rendering recovered routines into a text listing."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from ..symbols import SymbolTable
from .model import (
    Assign,
    BinaryOp,
    Call,
    Expr,
    Global,
    GlobalTableAccess,
    Jmp,
    Jz,
    LocalTableAccess,
    NamedVariant,
    Program,
    Return,
    ReturnValue,
    Routine,
    StackIndexed,
    Statement,
    Syscall,
    UnaryOp,
)


class IRTextRenderer:
    """Render :class:`Program` instances into a stable textual form."""

    def __init__(self, symbols: Optional[SymbolTable] = None) -> None:
        self.symbols = symbols or SymbolTable()

    def render(self, program: Program) -> str:
        lines: List[str] = []
        lines.extend(self._render_header(program))
        for routine in program.iter_routines():
            lines.extend(self._render_routine(program, routine))
        return "\n".join(lines) + "\n"

    def write(self, program: Program, output_path: Path) -> None:
        output_path.write_text(self.render(program), "utf-8")

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _render_header(self, program: Program) -> Iterable[str]:
        yield f"; scenario title={program.title!r} entry=0x{program.entry_point:08X}"
        yield f"; routines={len(program)} end=0x{program.end_offset:08X}"
        yield ""

    def _routine_name(self, program: Program, address: int) -> str:
        return self.symbols.name_for(address, entry_point=program.entry_point)

    def _render_routine(self, program: Program, routine: Routine) -> Iterable[str]:
        name = self._routine_name(program, routine.address)
        statements = routine.statements
        yield (
            f"; routine {name} offset=0x{routine.address:08X} "
            f"args={routine.args_count} locals={routine.locals_count} "
            f"statements={len(statements)}"
        )
        for statement in statements:
            text = self.render_statement(program, routine, statement)
            yield f"  {statement.address:08X}: {text}"
        yield ""

    def render_statement(self, program: Program, routine: Routine, statement: Statement) -> str:
        if isinstance(statement, Call):
            args = self._render_args(routine, statement.args)
            return f"call {self._routine_name(program, statement.target)}({args})"
        if isinstance(statement, Syscall):
            return f"syscall {statement.name}({self._render_args(routine, statement.args)})"
        if isinstance(statement, Return):
            return "return value" if statement.has_value else "return"
        if isinstance(statement, Jmp):
            return f"jmp 0x{statement.target:08X}"
        if isinstance(statement, Jz):
            condition = self.render_value(routine, statement.condition)
            return f"jz {condition} -> 0x{statement.target:08X}"
        if isinstance(statement, Assign):
            target = self.render_value(routine, statement.target)
            value = self.render_value(routine, statement.value)
            return f"{target} = {value}"
        return self.render_expression(routine, statement)

    def render_expression(self, routine: Routine, statement: Statement) -> str:
        if isinstance(statement, BinaryOp):
            left = self.render_value(routine, statement.left)
            right = self.render_value(routine, statement.right)
            return f"{statement.op}({left}, {right})"
        if isinstance(statement, UnaryOp):
            return f"{statement.op}({self.render_value(routine, statement.operand)})"
        if isinstance(statement, (GlobalTableAccess, LocalTableAccess)):
            table = self.render_value(routine, statement.table)
            key = self.render_value(routine, statement.key)
            return f"{table}[{key}]"
        raise TypeError(f"statement is not an expression: {type(statement)!r}")

    def render_value(self, routine: Routine, value: NamedVariant) -> str:
        if isinstance(value, StackIndexed):
            if not value.variant.is_nil:
                return value.variant.describe()
            # nil above the locals area was pushed, not left uninitialised
            if _is_operand_slot(value, routine.locals_count):
                return "nil"
            return value.name
        if isinstance(value, Global):
            return f"global[{value.slot}]"
        if isinstance(value, ReturnValue):
            return "ret"
        if isinstance(value, Expr):
            return self.render_expression(routine, routine.arena.resolve(value))
        raise TypeError(f"unsupported value type: {type(value)!r}")

    def _render_args(self, routine: Routine, args: Iterable[NamedVariant]) -> str:
        return ", ".join(self.render_value(routine, arg) for arg in args)


def _is_operand_slot(value: StackIndexed, locals_count: int) -> bool:
    if not value.name.startswith("local"):
        return False
    return int(value.name[len("local"):]) >= locals_count


__all__ = ["IRTextRenderer"]
