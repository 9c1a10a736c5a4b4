"""Helpers to serialise recovered routines for offline analysis."""

from __future__ import annotations

from typing import Any, Dict

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
    Variant,
)


def serialize_program(program: Program) -> Dict[str, Any]:
    """Convert a :class:`Program` into a JSON-serialisable mapping."""

    return {
        "title": program.title,
        "entry_point": program.entry_point,
        "end_offset": program.end_offset,
        "routines": [serialize_routine(routine) for routine in program.iter_routines()],
    }


def serialize_routine(routine: Routine) -> Dict[str, Any]:
    return {
        "address": routine.address,
        "args_count": routine.args_count,
        "locals_count": routine.locals_count,
        "statements": [
            serialize_statement(routine, statement) for statement in routine.statements
        ],
    }


def serialize_statement(routine: Routine, statement: Statement) -> Dict[str, Any]:
    """Serialise a statement; nested expressions are inlined."""

    base: Dict[str, Any] = {"address": statement.address}
    if isinstance(statement, Call):
        base.update(
            op="call",
            target=statement.target,
            args=[serialize_named(routine, arg) for arg in statement.args],
        )
    elif isinstance(statement, Syscall):
        base.update(
            op="syscall",
            name=statement.name,
            args=[serialize_named(routine, arg) for arg in statement.args],
        )
    elif isinstance(statement, Return):
        base.update(op="return", has_value=statement.has_value)
    elif isinstance(statement, Jmp):
        base.update(op="jmp", target=statement.target)
    elif isinstance(statement, Jz):
        base.update(
            op="jz",
            target=statement.target,
            condition=serialize_named(routine, statement.condition),
        )
    elif isinstance(statement, GlobalTableAccess):
        base.update(
            op="global_table_access",
            table=serialize_named(routine, statement.table),
            key=serialize_named(routine, statement.key),
        )
    elif isinstance(statement, LocalTableAccess):
        base.update(
            op="local_table_access",
            table=serialize_named(routine, statement.table),
            key=serialize_named(routine, statement.key),
        )
    elif isinstance(statement, BinaryOp):
        base.update(
            op="binary",
            operator=statement.op,
            left=serialize_named(routine, statement.left),
            right=serialize_named(routine, statement.right),
        )
    elif isinstance(statement, UnaryOp):
        base.update(
            op="unary",
            operator=statement.op,
            operand=serialize_named(routine, statement.operand),
        )
    elif isinstance(statement, Assign):
        base.update(
            op="assign",
            target=serialize_named(routine, statement.target),
            value=serialize_named(routine, statement.value),
        )
    else:
        raise TypeError(f"unsupported IR statement type: {type(statement)!r}")
    return base


def serialize_named(routine: Routine, value: NamedVariant) -> Dict[str, Any]:
    if isinstance(value, StackIndexed):
        return {"kind": "stack", "name": value.name, "variant": serialize_variant(value.variant)}
    if isinstance(value, ReturnValue):
        return {"kind": "return_value"}
    if isinstance(value, Global):
        return {"kind": "global", "slot": value.slot}
    if isinstance(value, Expr):
        return {
            "kind": "expr",
            "expr": serialize_statement(routine, routine.arena.resolve(value)),
        }
    raise TypeError(f"unsupported IR value type: {type(value)!r}")


def serialize_variant(variant: Variant) -> Dict[str, Any]:
    return {"type": variant.kind.name.lower(), "value": variant.value}


__all__ = [
    "serialize_named",
    "serialize_program",
    "serialize_routine",
    "serialize_statement",
    "serialize_variant",
]
