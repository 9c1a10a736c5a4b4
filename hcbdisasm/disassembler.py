"""Two-pass decoder turning the routine stream into IR statements.

The first pass walks the stream only to learn instruction lengths and records
a :class:`Routine` for every ``init_stack`` opcode.  The second pass walks the
same bytes again, feeding each routine's :class:`StackAnalyzer` and appending
statements.  Both passes stop at the system description offset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional

from .errors import FormatViolation, UnknownOpcodeError
from .ir.model import NamedVariant, Program, Routine, Statement
from .ir.stack import StackAnalyzer
from .opcodes import (
    BINARY_OPERATORS,
    HEADER_SIZE,
    OPCODE_SIZE,
    OPERAND_SIZES,
    UNARY_OPERATORS,
    Opcode,
)
from .scenario import Nls, Scenario

logger = logging.getLogger(__name__)


@dataclass
class DecoderContext:
    """Mutable decoding state threaded through every opcode handler."""

    scenario: Scenario
    cursor: int = HEADER_SIZE
    routines: Dict[int, Routine] = field(default_factory=dict)
    current: Optional[Routine] = None
    stack: Optional[StackAnalyzer] = None

    def rewind(self) -> None:
        self.cursor = HEADER_SIZE
        self.current = None
        self.stack = None

    @property
    def end(self) -> int:
        return self.scenario.get_sys_desc_offset()

    # operand readers advance the cursor past the value they return
    def take_u8(self) -> int:
        value = self.scenario.read_u8(self.cursor)
        self.cursor += 1
        return value

    def take_i8(self) -> int:
        value = self.scenario.read_i8(self.cursor)
        self.cursor += 1
        return value

    def take_u16(self) -> int:
        value = self.scenario.read_u16(self.cursor)
        self.cursor += 2
        return value

    def take_i16(self) -> int:
        value = self.scenario.read_i16(self.cursor)
        self.cursor += 2
        return value

    def take_u32(self) -> int:
        value = self.scenario.read_u32(self.cursor)
        self.cursor += 4
        return value

    def take_i32(self) -> int:
        value = self.scenario.read_i32(self.cursor)
        self.cursor += 4
        return value

    def take_f32(self) -> float:
        value = self.scenario.read_f32(self.cursor)
        self.cursor += 4
        return value

    def take_string(self) -> str:
        length = self.take_u8()
        value = self.scenario.read_cstring(self.cursor, length)
        self.cursor += length
        return value

    def routine_at(self, address: int) -> Routine:
        routine = self.routines.get(address)
        if routine is None:
            raise FormatViolation(f"routine not found: 0x{address:08X}")
        return routine

    def require_stack(self) -> StackAnalyzer:
        if self.stack is None:
            raise FormatViolation(
                f"stack analyzer not found (instruction outside a routine near 0x{self.cursor:08X})"
            )
        return self.stack

    def emit(self, statement: Statement) -> None:
        if self.current is None:
            raise FormatViolation(
                f"statement at 0x{statement.address:08X} does not belong to any routine"
            )
        self.current.append(statement)


Handler = Callable[[DecoderContext, int], None]


# ---------------------------------------------------------------------------
# discovery pass
# ---------------------------------------------------------------------------


def _discover_instruction(ctx: DecoderContext) -> None:
    address = ctx.cursor
    value = ctx.scenario.read_u8(address)
    opcode = Opcode.lookup(value)
    if opcode is None:
        raise UnknownOpcodeError(value, address)
    ctx.cursor += OPCODE_SIZE

    if opcode is Opcode.INIT_STACK:
        args_count = ctx.take_u8()
        locals_count = ctx.take_u8()
        ctx.routines[address] = Routine(address, args_count, locals_count)
        logger.debug(
            "routine 0x%08X args=%d locals=%d", address, args_count, locals_count
        )
    elif opcode is Opcode.PUSH_STRING:
        length = ctx.take_u8()
        ctx.cursor += length
    else:
        ctx.cursor += OPERAND_SIZES[opcode]


# ---------------------------------------------------------------------------
# interpretation handlers
# ---------------------------------------------------------------------------


def _nop(ctx: DecoderContext, address: int) -> None:
    pass


def _init_stack(ctx: DecoderContext, address: int) -> None:
    # counts were captured by the discovery pass
    ctx.cursor += OPERAND_SIZES[Opcode.INIT_STACK]
    routine = ctx.routine_at(address)
    ctx.current = routine
    ctx.stack = StackAnalyzer(routine.locals_count, routine.args_count, routine.arena)


def _call(ctx: DecoderContext, address: int) -> None:
    target = ctx.take_u32()
    callee = ctx.routine_at(target)
    stack = ctx.require_stack()
    args = [stack.pop() for _ in range(callee.args_count)]
    ctx.emit(Statement.from_call(address, target, args))


def _syscall(ctx: DecoderContext, address: int) -> None:
    syscall_id = ctx.take_u16()
    syscall = ctx.scenario.get_syscall(syscall_id)
    if syscall is None:
        raise FormatViolation(f"syscall not found: {syscall_id} at 0x{address:08X}")
    stack = ctx.require_stack()
    args = [stack.pop() for _ in range(syscall.args)]
    ctx.emit(Statement.from_syscall(address, syscall.name, args))


def _ret(ctx: DecoderContext, address: int) -> None:
    ctx.emit(Statement.from_return(address, False))


def _retv(ctx: DecoderContext, address: int) -> None:
    ctx.emit(Statement.from_return(address, True))


def _jmp(ctx: DecoderContext, address: int) -> None:
    target = ctx.take_u32()
    ctx.emit(Statement.from_jmp(address, target))


def _jz(ctx: DecoderContext, address: int) -> None:
    target = ctx.take_u32()
    condition = ctx.require_stack().pop()
    ctx.emit(Statement.from_jz(address, target, condition))


def _push_nil(ctx: DecoderContext, address: int) -> None:
    ctx.require_stack().push_nil()


def _push_true(ctx: DecoderContext, address: int) -> None:
    ctx.require_stack().push_true()


def _push_i32(ctx: DecoderContext, address: int) -> None:
    value = ctx.take_i32()
    ctx.require_stack().push_int(value)


def _push_i16(ctx: DecoderContext, address: int) -> None:
    value = ctx.take_i16()
    ctx.require_stack().push_int(value)


def _push_i8(ctx: DecoderContext, address: int) -> None:
    value = ctx.take_i8()
    ctx.require_stack().push_int(value)


def _push_f32(ctx: DecoderContext, address: int) -> None:
    value = ctx.take_f32()
    ctx.require_stack().push_float(value)


def _push_string(ctx: DecoderContext, address: int) -> None:
    value = ctx.take_string()
    ctx.require_stack().push_string(value)


def _push_global(ctx: DecoderContext, address: int) -> None:
    key = ctx.take_u16()
    ctx.require_stack().push_global(key)


def _push_stack(ctx: DecoderContext, address: int) -> None:
    offset = ctx.take_i8()
    ctx.require_stack().push_stack(offset)


def _push_global_table(ctx: DecoderContext, address: int) -> None:
    key = ctx.take_u16()
    stack = ctx.require_stack()
    table = NamedVariant.from_global(key)
    selector = stack.pop()
    stack.push_expr(Statement.from_global_table_access(address, table, selector))


def _push_local_table(ctx: DecoderContext, address: int) -> None:
    index = ctx.take_i8()
    stack = ctx.require_stack()
    table = stack.get(index)
    selector = stack.pop()
    stack.push_expr(Statement.from_local_table_access(address, table, selector))


def _push_top(ctx: DecoderContext, address: int) -> None:
    ctx.require_stack().push_top()


def _push_return(ctx: DecoderContext, address: int) -> None:
    ctx.require_stack().push_return_value()


def _pop_global(ctx: DecoderContext, address: int) -> None:
    key = ctx.take_u16()
    value = ctx.require_stack().pop()
    ctx.emit(Statement.from_assign(address, NamedVariant.from_global(key), value))


def _pop_stack(ctx: DecoderContext, address: int) -> None:
    index = ctx.take_i8()
    stack = ctx.require_stack()
    value = stack.pop()
    target = stack.get(index)
    ctx.emit(Statement.from_assign(address, target, value))


def _pop_global_table(ctx: DecoderContext, address: int) -> None:
    key = ctx.take_u16()
    stack = ctx.require_stack()
    value = stack.pop()
    selector = stack.pop()
    access = Statement.from_global_table_access(
        address, NamedVariant.from_global(key), selector
    )
    target = stack.arena.allocate(access)
    ctx.emit(Statement.from_assign(address, target, value))


def _pop_local_table(ctx: DecoderContext, address: int) -> None:
    index = ctx.take_i8()
    stack = ctx.require_stack()
    value = stack.pop()
    selector = stack.pop()
    table = stack.get(index)
    access = Statement.from_local_table_access(address, table, selector)
    target = stack.arena.allocate(access)
    ctx.emit(Statement.from_assign(address, target, value))


def _unary(op: str) -> Handler:
    def handler(ctx: DecoderContext, address: int) -> None:
        stack = ctx.require_stack()
        operand = stack.pop()
        stack.push_expr(Statement.from_unary_op(address, op, operand))

    return handler


def _binary(op: str) -> Handler:
    def handler(ctx: DecoderContext, address: int) -> None:
        stack = ctx.require_stack()
        right = stack.pop()
        left = stack.pop()
        stack.push_expr(Statement.from_binary_op(address, op, left, right))

    return handler


_INTERPRETERS: Dict[Opcode, Handler] = {
    Opcode.NOP: _nop,
    Opcode.INIT_STACK: _init_stack,
    Opcode.CALL: _call,
    Opcode.SYSCALL: _syscall,
    Opcode.RET: _ret,
    Opcode.RETV: _retv,
    Opcode.JMP: _jmp,
    Opcode.JZ: _jz,
    Opcode.PUSH_NIL: _push_nil,
    Opcode.PUSH_TRUE: _push_true,
    Opcode.PUSH_I32: _push_i32,
    Opcode.PUSH_I16: _push_i16,
    Opcode.PUSH_I8: _push_i8,
    Opcode.PUSH_F32: _push_f32,
    Opcode.PUSH_STRING: _push_string,
    Opcode.PUSH_GLOBAL: _push_global,
    Opcode.PUSH_STACK: _push_stack,
    Opcode.PUSH_GLOBAL_TABLE: _push_global_table,
    Opcode.PUSH_LOCAL_TABLE: _push_local_table,
    Opcode.PUSH_TOP: _push_top,
    Opcode.PUSH_RETURN: _push_return,
    Opcode.POP_GLOBAL: _pop_global,
    Opcode.POP_STACK: _pop_stack,
    Opcode.POP_GLOBAL_TABLE: _pop_global_table,
    Opcode.POP_LOCAL_TABLE: _pop_local_table,
}
_INTERPRETERS.update({opcode: _unary(op) for opcode, op in UNARY_OPERATORS.items()})
_INTERPRETERS.update({opcode: _binary(op) for opcode, op in BINARY_OPERATORS.items()})


def _interpret_instruction(ctx: DecoderContext) -> None:
    address = ctx.cursor
    value = ctx.scenario.read_u8(address)
    ctx.cursor += OPCODE_SIZE
    opcode = Opcode.lookup(value)
    if opcode is None:
        logger.error("unknown opcode 0x%02X at 0x%08X", value, address)
        return
    _INTERPRETERS[opcode](ctx, address)


# ---------------------------------------------------------------------------
# driver
# ---------------------------------------------------------------------------


class Disassembler:
    """Recover per-routine IR from a scenario."""

    def __init__(self, scenario: Scenario) -> None:
        self.scenario = scenario
        self.context = DecoderContext(scenario)
        self.discovery_end: Optional[int] = None

    @classmethod
    def from_path(cls, path: Path, nls: Nls = Nls.SHIFT_JIS) -> "Disassembler":
        return cls(Scenario.load(path, nls))

    @property
    def pc(self) -> int:
        return self.context.cursor

    @property
    def routines(self) -> Dict[int, Routine]:
        return self.context.routines

    def discover(self) -> Dict[int, Routine]:
        """Run the discovery pass and return the routine table."""

        ctx = self.context
        ctx.rewind()
        ctx.routines.clear()
        while ctx.cursor < ctx.end:
            _discover_instruction(ctx)
        self.discovery_end = ctx.cursor
        logger.info("discovered %d routine(s)", len(ctx.routines))
        return ctx.routines

    def interpret(self) -> Dict[int, Routine]:
        """Run the interpretation pass over previously discovered routines."""

        ctx = self.context
        ctx.rewind()
        for routine in ctx.routines.values():
            routine.reset()
        while ctx.cursor < ctx.end:
            _interpret_instruction(ctx)
        return ctx.routines

    def disassemble(self) -> Program:
        self.discover()
        self.interpret()
        if self.discovery_end != self.pc:
            logger.warning(
                "passes ended on different offsets: 0x%08X vs 0x%08X",
                self.discovery_end,
                self.pc,
            )
        return Program(
            entry_point=self.scenario.entry_point,
            title=self.scenario.title,
            routines=dict(self.context.routines),
            end_offset=self.pc,
        )


def disassemble(data: bytes, nls: Nls = Nls.SHIFT_JIS) -> Program:
    """Decode a scenario blob into its routine table."""

    return Disassembler(Scenario(data, nls)).disassemble()


__all__ = ["DecoderContext", "Disassembler", "disassemble"]
