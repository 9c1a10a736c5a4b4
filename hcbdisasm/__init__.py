"""Public package exports for the HCB scenario disassembler."""

from .cfg import BasicBlock
from .disassembler import DecoderContext, Disassembler, disassemble
from .errors import (
    DisassemblyError,
    FormatViolation,
    InvalidSlotError,
    ScenarioError,
    StackUnderflow,
    UnknownOpcodeError,
)
from .ir import IRTextRenderer, Program, Routine, serialize_program
from .opcodes import Opcode
from .scenario import Nls, Scenario
from .symbols import SymbolTable

__all__ = [
    "BasicBlock",
    "DecoderContext",
    "Disassembler",
    "DisassemblyError",
    "FormatViolation",
    "IRTextRenderer",
    "InvalidSlotError",
    "Nls",
    "Opcode",
    "Program",
    "Routine",
    "Scenario",
    "ScenarioError",
    "StackUnderflow",
    "SymbolTable",
    "UnknownOpcodeError",
    "disassemble",
    "serialize_program",
]
