"""Opcode table of the scenario virtual machine."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, Optional


HEADER_SIZE = 4
OPCODE_SIZE = 1


class Opcode(IntEnum):
    NOP = 0x00
    INIT_STACK = 0x01
    CALL = 0x02
    SYSCALL = 0x03
    RET = 0x04
    RETV = 0x05
    JMP = 0x06
    JZ = 0x07
    PUSH_NIL = 0x08
    PUSH_TRUE = 0x09
    PUSH_I32 = 0x0A
    PUSH_I16 = 0x0B
    PUSH_I8 = 0x0C
    PUSH_F32 = 0x0D
    PUSH_STRING = 0x0E
    PUSH_GLOBAL = 0x0F
    PUSH_STACK = 0x10
    PUSH_GLOBAL_TABLE = 0x11
    PUSH_LOCAL_TABLE = 0x12
    PUSH_TOP = 0x13
    PUSH_RETURN = 0x14
    POP_GLOBAL = 0x15
    POP_STACK = 0x16
    POP_GLOBAL_TABLE = 0x17
    POP_LOCAL_TABLE = 0x18
    NEG = 0x19
    ADD = 0x1A
    SUB = 0x1B
    MUL = 0x1C
    DIV = 0x1D
    MOD = 0x1E
    BITTEST = 0x1F
    AND = 0x20
    OR = 0x21
    SETE = 0x22
    SETNE = 0x23
    SETG = 0x24
    SETLE = 0x25
    SETL = 0x26
    SETGE = 0x27

    @classmethod
    def lookup(cls, value: int) -> Optional["Opcode"]:
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def mnemonic(self) -> str:
        return self.name.lower()


# Fixed operand width following the opcode byte.  ``push_string`` is the only
# length-prefixed instruction and is absent from this table.
OPERAND_SIZES: Dict[Opcode, int] = {
    Opcode.NOP: 0,
    Opcode.INIT_STACK: 2,
    Opcode.CALL: 4,
    Opcode.SYSCALL: 2,
    Opcode.RET: 0,
    Opcode.RETV: 0,
    Opcode.JMP: 4,
    Opcode.JZ: 4,
    Opcode.PUSH_NIL: 0,
    Opcode.PUSH_TRUE: 0,
    Opcode.PUSH_I32: 4,
    Opcode.PUSH_I16: 2,
    Opcode.PUSH_I8: 1,
    Opcode.PUSH_F32: 4,
    Opcode.PUSH_GLOBAL: 2,
    Opcode.PUSH_STACK: 1,
    Opcode.PUSH_GLOBAL_TABLE: 2,
    Opcode.PUSH_LOCAL_TABLE: 1,
    Opcode.PUSH_TOP: 0,
    Opcode.PUSH_RETURN: 0,
    Opcode.POP_GLOBAL: 2,
    Opcode.POP_STACK: 1,
    Opcode.POP_GLOBAL_TABLE: 2,
    Opcode.POP_LOCAL_TABLE: 1,
    Opcode.NEG: 0,
    Opcode.ADD: 0,
    Opcode.SUB: 0,
    Opcode.MUL: 0,
    Opcode.DIV: 0,
    Opcode.MOD: 0,
    Opcode.BITTEST: 0,
    Opcode.AND: 0,
    Opcode.OR: 0,
    Opcode.SETE: 0,
    Opcode.SETNE: 0,
    Opcode.SETG: 0,
    Opcode.SETLE: 0,
    Opcode.SETL: 0,
    Opcode.SETGE: 0,
}


UNARY_OPERATORS: Dict[Opcode, str] = {
    Opcode.NEG: "pvm_neg",
}


BINARY_OPERATORS: Dict[Opcode, str] = {
    Opcode.ADD: "pvm_add",
    Opcode.SUB: "pvm_sub",
    Opcode.MUL: "pvm_mul",
    Opcode.DIV: "pvm_div",
    Opcode.MOD: "pvm_mod",
    Opcode.BITTEST: "pvm_bittest",
    Opcode.AND: "pvm_and",
    Opcode.OR: "pvm_or",
    Opcode.SETE: "pvm_sete",
    Opcode.SETNE: "pvm_setne",
    Opcode.SETG: "pvm_setg",
    Opcode.SETLE: "pvm_setle",
    Opcode.SETL: "pvm_setl",
    Opcode.SETGE: "pvm_setge",
}


__all__ = [
    "BINARY_OPERATORS",
    "HEADER_SIZE",
    "OPCODE_SIZE",
    "OPERAND_SIZES",
    "Opcode",
    "UNARY_OPERATORS",
]
