"""Public exports for the recovered intermediate representation."""

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
    StatementArena,
    Syscall,
    UnaryOp,
    Variant,
    VariantKind,
)
from .printer import IRTextRenderer
from .serialize import serialize_program
from .stack import StackAnalyzer

__all__ = [
    "Assign",
    "BinaryOp",
    "Call",
    "Expr",
    "Global",
    "GlobalTableAccess",
    "IRTextRenderer",
    "Jmp",
    "Jz",
    "LocalTableAccess",
    "NamedVariant",
    "Program",
    "Return",
    "ReturnValue",
    "Routine",
    "StackAnalyzer",
    "StackIndexed",
    "Statement",
    "StatementArena",
    "Syscall",
    "UnaryOp",
    "Variant",
    "VariantKind",
    "serialize_program",
]
