"""Dataclasses describing the recovered intermediate representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from ..errors import InvalidSlotError


class VariantKind(Enum):
    """Semantic kind of a constant pushed onto the stack."""

    NIL = auto()
    TRUE = auto()
    INT = auto()
    FLOAT = auto()
    STRING = auto()


@dataclass(frozen=True)
class Variant:
    """Constant payload carried by a stack slot."""

    kind: VariantKind
    value: Union[None, bool, int, float, str] = None

    @classmethod
    def nil(cls) -> "Variant":
        return cls(VariantKind.NIL)

    @classmethod
    def true(cls) -> "Variant":
        return cls(VariantKind.TRUE, True)

    @classmethod
    def int_(cls, value: int) -> "Variant":
        return cls(VariantKind.INT, int(value))

    @classmethod
    def float_(cls, value: float) -> "Variant":
        return cls(VariantKind.FLOAT, float(value))

    @classmethod
    def string(cls, value: str) -> "Variant":
        return cls(VariantKind.STRING, value)

    @property
    def is_nil(self) -> bool:
        return self.kind is VariantKind.NIL

    def describe(self) -> str:
        if self.kind is VariantKind.NIL:
            return "nil"
        if self.kind is VariantKind.TRUE:
            return "true"
        if self.kind is VariantKind.STRING:
            escaped = str(self.value).replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        if self.kind is VariantKind.FLOAT:
            return repr(float(self.value))
        return str(self.value)


# ---------------------------------------------------------------------------
# named values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NamedVariant:
    """Reference to a value-producing location.

    The concrete shapes are :class:`StackIndexed`, :class:`ReturnValue`,
    :class:`Global` and :class:`Expr`.  Instances are built through the
    classmethods below which validate slot indices.
    """

    @classmethod
    def from_arg(cls, index: int, variant: Optional[Variant] = None) -> "StackIndexed":
        # Arguments live below the frame pointer: -1 is the saved frame,
        # -2 the first argument, -3 the second and so on.
        if index >= -1:
            raise InvalidSlotError(f"invalid argument index {index}")
        return StackIndexed(f"arg{abs(index) - 2}", variant or Variant.nil())

    @classmethod
    def from_local(cls, index: int, variant: Optional[Variant] = None) -> "StackIndexed":
        if index < 0:
            raise InvalidSlotError(f"invalid local index {index}")
        return StackIndexed(f"local{index}", variant or Variant.nil())

    @classmethod
    def from_global(cls, slot: int) -> "Global":
        return Global(slot)

    @classmethod
    def from_return_value(cls) -> "ReturnValue":
        return ReturnValue()

    @classmethod
    def from_expr(cls, index: int) -> "Expr":
        return Expr(index)

    def is_same_register(self, other: "NamedVariant") -> Optional[bool]:
        """Return whether both values denote the same stack slot.

        Only two :class:`StackIndexed` values can be compared; every other
        pairing answers ``None``.
        """

        if isinstance(self, StackIndexed) and isinstance(other, StackIndexed):
            return self.name == other.name
        return None


@dataclass(frozen=True)
class StackIndexed(NamedVariant):
    """Local or argument slot, optionally holding a known constant."""

    name: str
    variant: Variant = field(default_factory=Variant.nil)


@dataclass(frozen=True)
class ReturnValue(NamedVariant):
    """Most recent value returned by a callee."""


@dataclass(frozen=True)
class Global(NamedVariant):
    """Entry of the global table."""

    slot: int


@dataclass(frozen=True)
class Expr(NamedVariant):
    """Value computed by a statement stored in the routine arena."""

    index: int


# ---------------------------------------------------------------------------
# statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Statement:
    """Base class for IR statements.

    ``address`` is the offset of the opcode the statement was decoded from.
    """

    address: int

    @classmethod
    def from_call(cls, address: int, target: int, args: Sequence[NamedVariant]) -> "Call":
        return Call(address, target, tuple(args))

    @classmethod
    def from_syscall(cls, address: int, name: str, args: Sequence[NamedVariant]) -> "Syscall":
        return Syscall(address, name, tuple(args))

    @classmethod
    def from_return(cls, address: int, has_value: bool) -> "Return":
        return Return(address, has_value)

    @classmethod
    def from_jmp(cls, address: int, target: int) -> "Jmp":
        return Jmp(address, target)

    @classmethod
    def from_jz(cls, address: int, target: int, condition: NamedVariant) -> "Jz":
        return Jz(address, target, condition)

    @classmethod
    def from_global_table_access(
        cls, address: int, table: NamedVariant, key: NamedVariant
    ) -> "GlobalTableAccess":
        return GlobalTableAccess(address, table, key)

    @classmethod
    def from_local_table_access(
        cls, address: int, table: NamedVariant, key: NamedVariant
    ) -> "LocalTableAccess":
        return LocalTableAccess(address, table, key)

    @classmethod
    def from_binary_op(
        cls, address: int, op: str, left: NamedVariant, right: NamedVariant
    ) -> "BinaryOp":
        return BinaryOp(address, op, left, right)

    @classmethod
    def from_unary_op(cls, address: int, op: str, operand: NamedVariant) -> "UnaryOp":
        return UnaryOp(address, op, operand)

    @classmethod
    def from_assign(cls, address: int, target: NamedVariant, value: NamedVariant) -> "Assign":
        return Assign(address, target, value)


@dataclass(frozen=True)
class Call(Statement):
    """Invocation of another routine.

    ``args`` are stored in pop order: the last pushed argument comes first.
    """

    target: int
    args: Tuple[NamedVariant, ...] = ()


@dataclass(frozen=True)
class Syscall(Statement):
    """Invocation of a host routine."""

    name: str
    args: Tuple[NamedVariant, ...] = ()


@dataclass(frozen=True)
class Return(Statement):
    has_value: bool


@dataclass(frozen=True)
class Jmp(Statement):
    target: int


@dataclass(frozen=True)
class Jz(Statement):
    target: int
    condition: NamedVariant


@dataclass(frozen=True)
class GlobalTableAccess(Statement):
    table: NamedVariant
    key: NamedVariant


@dataclass(frozen=True)
class LocalTableAccess(Statement):
    table: NamedVariant
    key: NamedVariant


@dataclass(frozen=True)
class BinaryOp(Statement):
    op: str
    left: NamedVariant
    right: NamedVariant


@dataclass(frozen=True)
class UnaryOp(Statement):
    op: str
    operand: NamedVariant


@dataclass(frozen=True)
class Assign(Statement):
    """Store into ``target``; the usual product of the ``pop_*`` opcodes."""

    target: NamedVariant
    value: NamedVariant


# ---------------------------------------------------------------------------
# ownership
# ---------------------------------------------------------------------------


class StatementArena:
    """Storage for the statements of a single routine.

    Nested statements are referenced from :class:`Expr` values by their index
    so no statement ever owns another one directly.
    """

    def __init__(self) -> None:
        self._statements: List[Statement] = []

    def __len__(self) -> int:
        return len(self._statements)

    def __getitem__(self, index: int) -> Statement:
        return self._statements[index]

    def __iter__(self) -> Iterator[Statement]:
        return iter(self._statements)

    def add(self, statement: Statement) -> int:
        self._statements.append(statement)
        return len(self._statements) - 1

    def allocate(self, statement: Statement) -> Expr:
        return NamedVariant.from_expr(self.add(statement))

    def resolve(self, expr: Expr) -> Statement:
        return self._statements[expr.index]


@dataclass
class Routine:
    """Callable unit discovered from an ``init_stack`` opcode."""

    address: int
    args_count: int
    locals_count: int
    arena: StatementArena = field(default_factory=StatementArena, repr=False)
    body: List[int] = field(default_factory=list)

    def append(self, statement: Statement) -> None:
        self.body.append(self.arena.add(statement))

    def reset(self) -> None:
        """Drop every recovered statement ahead of a fresh interpretation."""

        self.arena = StatementArena()
        self.body = []

    @property
    def statements(self) -> Tuple[Statement, ...]:
        return tuple(self.arena[index] for index in self.body)

    def resolve(self, value: NamedVariant) -> Optional[Statement]:
        """Return the statement behind ``value`` when it is an :class:`Expr`."""

        if isinstance(value, Expr):
            return self.arena.resolve(value)
        return None


@dataclass
class Program:
    """Routine table produced by a full disassembly run."""

    entry_point: int
    title: str
    routines: Dict[int, Routine] = field(default_factory=dict)
    end_offset: int = 0

    def iter_routines(self) -> Iterator[Routine]:
        for address in sorted(self.routines):
            yield self.routines[address]

    def routine(self, address: int) -> Optional[Routine]:
        return self.routines.get(address)

    def __len__(self) -> int:
        return len(self.routines)


__all__ = [
    "Assign",
    "BinaryOp",
    "Call",
    "Expr",
    "Global",
    "GlobalTableAccess",
    "Jmp",
    "Jz",
    "LocalTableAccess",
    "NamedVariant",
    "Program",
    "Return",
    "ReturnValue",
    "Routine",
    "StackIndexed",
    "Statement",
    "StatementArena",
    "Syscall",
    "UnaryOp",
    "Variant",
    "VariantKind",
]
