"""Exception types raised while decoding HCB scenarios."""

from __future__ import annotations

from typing import Optional


class DisassemblyError(ValueError):
    """Base class for every error raised by the disassembler."""


class ScenarioError(DisassemblyError):
    """The container could not be read (truncated blob, bad offsets...)."""


class FormatViolation(DisassemblyError):
    """The instruction stream is inconsistent with the VM encoding."""


class UnknownOpcodeError(FormatViolation):
    """An opcode outside of the known set was met during discovery.

    Discovery only knows how far to advance for recognised opcodes, so an
    unknown byte makes the rest of the stream unreadable.
    """

    def __init__(self, opcode: int, offset: int, message: Optional[str] = None) -> None:
        self.opcode = opcode
        self.offset = offset
        super().__init__(message or f"unexpected opcode 0x{opcode:02X} at 0x{offset:08X}")


class StackUnderflow(DisassemblyError):
    """A pop was requested while the operand area was empty."""


class InvalidSlotError(DisassemblyError):
    """A local or argument slot index outside of the valid range."""


__all__ = [
    "DisassemblyError",
    "FormatViolation",
    "InvalidSlotError",
    "ScenarioError",
    "StackUnderflow",
    "UnknownOpcodeError",
]
