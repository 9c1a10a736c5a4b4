import pytest

from hcbdisasm.errors import InvalidSlotError
from hcbdisasm.ir.model import (
    Assign,
    BinaryOp,
    Call,
    Expr,
    Global,
    NamedVariant,
    Return,
    ReturnValue,
    Routine,
    StackIndexed,
    Statement,
    StatementArena,
    Variant,
    VariantKind,
)


@pytest.mark.parametrize("index, name", [(-2, "arg0"), (-3, "arg1"), (-9, "arg7")])
def test_from_arg_names_slot(index: int, name: str) -> None:
    value = NamedVariant.from_arg(index)
    assert isinstance(value, StackIndexed)
    assert value.name == name
    assert value.variant.is_nil


@pytest.mark.parametrize("index", [-1, 0, 1, 5])
def test_from_arg_rejects_frame_pointer_and_locals(index: int) -> None:
    with pytest.raises(InvalidSlotError):
        NamedVariant.from_arg(index)


def test_from_local_names_slot() -> None:
    assert NamedVariant.from_local(0).name == "local0"
    assert NamedVariant.from_local(12, Variant.int_(4)) == StackIndexed("local12", Variant.int_(4))


@pytest.mark.parametrize("index", [-1, -2])
def test_from_local_rejects_negative_index(index: int) -> None:
    with pytest.raises(InvalidSlotError):
        NamedVariant.from_local(index)


def test_is_same_register_compares_names_only() -> None:
    first = NamedVariant.from_local(1, Variant.int_(3))
    second = NamedVariant.from_local(1, Variant.string("x"))
    other = NamedVariant.from_local(2)

    assert first.is_same_register(second) is True
    assert first.is_same_register(other) is False
    assert NamedVariant.from_arg(-2).is_same_register(NamedVariant.from_arg(-2)) is True


def test_is_same_register_unknown_for_other_kinds() -> None:
    local = NamedVariant.from_local(0)
    assert local.is_same_register(NamedVariant.from_global(0)) is None
    assert NamedVariant.from_global(1).is_same_register(NamedVariant.from_global(1)) is None
    assert NamedVariant.from_return_value().is_same_register(local) is None
    assert NamedVariant.from_expr(0).is_same_register(local) is None


def test_named_constructors() -> None:
    assert NamedVariant.from_global(7) == Global(7)
    assert NamedVariant.from_return_value() == ReturnValue()
    assert NamedVariant.from_expr(3) == Expr(3)


def test_variant_describe() -> None:
    assert Variant.nil().describe() == "nil"
    assert Variant.true().describe() == "true"
    assert Variant.int_(-4).describe() == "-4"
    assert Variant.float_(1.5).describe() == "1.5"
    assert Variant.string('say "hi"').describe() == '"say \\"hi\\""'
    assert Variant.string("x").kind is VariantKind.STRING


def test_statement_builders_keep_address() -> None:
    target = NamedVariant.from_global(1)
    value = NamedVariant.from_local(0, Variant.true())
    statements = [
        Statement.from_call(0x10, 0x40, [value]),
        Statement.from_syscall(0x11, "Wait", []),
        Statement.from_return(0x12, True),
        Statement.from_jmp(0x13, 0x20),
        Statement.from_jz(0x14, 0x30, value),
        Statement.from_global_table_access(0x15, target, value),
        Statement.from_local_table_access(0x16, value, value),
        Statement.from_binary_op(0x17, "pvm_add", value, value),
        Statement.from_unary_op(0x18, "pvm_neg", value),
        Statement.from_assign(0x19, target, value),
    ]

    assert [statement.address for statement in statements] == list(range(0x10, 0x1A))
    assert statements[0] == Call(0x10, 0x40, (value,))
    assert statements[2] == Return(0x12, True)


def test_arena_resolves_expressions() -> None:
    arena = StatementArena()
    left = NamedVariant.from_local(0, Variant.int_(1))
    right = NamedVariant.from_local(1, Variant.int_(2))
    expr = arena.allocate(Statement.from_binary_op(8, "pvm_sub", left, right))

    assert expr == Expr(0)
    assert arena.resolve(expr) == BinaryOp(8, "pvm_sub", left, right)
    assert len(arena) == 1


def test_routine_statements_skip_nested_expressions() -> None:
    routine = Routine(address=4, args_count=0, locals_count=0)
    left = NamedVariant.from_local(0, Variant.int_(1))
    expr = routine.arena.allocate(Statement.from_unary_op(7, "pvm_neg", left))
    routine.append(Statement.from_assign(8, NamedVariant.from_global(2), expr))
    routine.append(Statement.from_return(11, False))

    assert routine.statements == (
        Assign(8, Global(2), Expr(0)),
        Return(11, False),
    )
    assert routine.resolve(expr).op == "pvm_neg"
    assert routine.resolve(left) is None
