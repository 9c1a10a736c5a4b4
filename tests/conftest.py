import struct
from typing import Iterable, Optional, Sequence, Tuple

import pytest

from hcbdisasm.opcodes import HEADER_SIZE, Opcode


class ScenarioBuilder:
    """Assemble scenario blobs for tests.

    Every emitting method returns the address of the opcode it wrote.
    """

    def __init__(self) -> None:
        self.code = bytearray()

    @property
    def here(self) -> int:
        return HEADER_SIZE + len(self.code)

    def emit(self, opcode: int, payload: bytes = b"") -> int:
        address = self.here
        self.code.append(int(opcode))
        self.code += payload
        return address

    def raw(self, data: bytes) -> int:
        address = self.here
        self.code += data
        return address

    def op(self, opcode: Opcode) -> int:
        return self.emit(opcode)

    def init_stack(self, args: int, locals_: int) -> int:
        return self.emit(Opcode.INIT_STACK, struct.pack("<bb", args, locals_))

    def call(self, target: int) -> int:
        return self.emit(Opcode.CALL, struct.pack("<I", target))

    def syscall(self, syscall_id: int) -> int:
        return self.emit(Opcode.SYSCALL, struct.pack("<H", syscall_id))

    def jmp(self, target: int) -> int:
        return self.emit(Opcode.JMP, struct.pack("<I", target))

    def jz(self, target: int) -> int:
        return self.emit(Opcode.JZ, struct.pack("<I", target))

    def push_i32(self, value: int) -> int:
        return self.emit(Opcode.PUSH_I32, struct.pack("<i", value))

    def push_i16(self, value: int) -> int:
        return self.emit(Opcode.PUSH_I16, struct.pack("<h", value))

    def push_i8(self, value: int) -> int:
        return self.emit(Opcode.PUSH_I8, struct.pack("<b", value))

    def push_f32(self, value: float) -> int:
        return self.emit(Opcode.PUSH_F32, struct.pack("<f", value))

    def push_string(self, text: str, codec: str = "cp932") -> int:
        data = text.encode(codec) + b"\0"
        return self.emit(Opcode.PUSH_STRING, bytes([len(data)]) + data)

    def push_global(self, key: int) -> int:
        return self.emit(Opcode.PUSH_GLOBAL, struct.pack("<H", key))

    def push_stack(self, offset: int) -> int:
        return self.emit(Opcode.PUSH_STACK, struct.pack("<b", offset))

    def push_global_table(self, key: int) -> int:
        return self.emit(Opcode.PUSH_GLOBAL_TABLE, struct.pack("<H", key))

    def push_local_table(self, index: int) -> int:
        return self.emit(Opcode.PUSH_LOCAL_TABLE, struct.pack("<b", index))

    def pop_global(self, key: int) -> int:
        return self.emit(Opcode.POP_GLOBAL, struct.pack("<H", key))

    def pop_stack(self, index: int) -> int:
        return self.emit(Opcode.POP_STACK, struct.pack("<b", index))

    def pop_global_table(self, key: int) -> int:
        return self.emit(Opcode.POP_GLOBAL_TABLE, struct.pack("<H", key))

    def pop_local_table(self, index: int) -> int:
        return self.emit(Opcode.POP_LOCAL_TABLE, struct.pack("<b", index))

    def build(
        self,
        *,
        syscalls: Sequence[Tuple[str, int]] = (),
        title: str = "test",
        entry_point: Optional[int] = None,
        custom_syscalls: Iterable[str] = (),
        codec: str = "cp932",
    ) -> bytes:
        sys_desc_offset = HEADER_SIZE + len(self.code)
        out = bytearray(struct.pack("<I", sys_desc_offset))
        out += self.code
        out += struct.pack("<I", HEADER_SIZE if entry_point is None else entry_point)
        out += struct.pack("<HHH", 16, 8, 1)
        title_data = title.encode(codec) + b"\0"
        out += bytes([len(title_data)]) + title_data
        out += struct.pack("<H", len(syscalls))
        for name, args in syscalls:
            name_data = name.encode(codec) + b"\0"
            out += bytes([args, len(name_data)]) + name_data
        custom = list(custom_syscalls)
        out += struct.pack("<H", len(custom))
        for name in custom:
            name_data = name.encode(codec) + b"\0"
            out += bytes([len(name_data)]) + name_data
        return bytes(out)


@pytest.fixture
def builder() -> ScenarioBuilder:
    return ScenarioBuilder()
