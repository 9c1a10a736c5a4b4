"""Binary container helpers for ``.hcb`` scenario files."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import ScenarioError


class Nls(Enum):
    """Text encodings used by scenario strings."""

    SHIFT_JIS = "shift_jis"
    GBK = "gbk"
    UTF8 = "utf8"

    @property
    def codec(self) -> str:
        return _CODECS[self]

    @classmethod
    def parse(cls, value: str) -> "Nls":
        token = value.strip().lower().replace("-", "_")
        for member in cls:
            if token in {member.value, member.name.lower()}:
                return member
        if token in {"sjis", "cp932"}:
            return cls.SHIFT_JIS
        if token == "utf_8":
            return cls.UTF8
        raise ValueError(f"unknown text encoding: {value}")


_CODECS = {
    Nls.SHIFT_JIS: "cp932",
    Nls.GBK: "gbk",
    Nls.UTF8: "utf-8",
}


@dataclass(frozen=True)
class Syscall:
    """Host routine entry of the syscall table."""

    id: int
    name: str
    args: int


@dataclass
class ScenarioHeader:
    """Metadata stored behind the routine stream."""

    entry_point: int
    non_volatile_global_count: int
    volatile_global_count: int
    game_mode: int
    title: str
    custom_syscalls: List[str] = field(default_factory=list)


class Scenario:
    """Random-access reader over an in-memory scenario blob.

    The first word of the file is the offset of the system description which
    also marks the end of the routine stream.  Every read takes an absolute
    offset; the reader keeps no cursor of its own.
    """

    def __init__(self, data: bytes, nls: Nls = Nls.SHIFT_JIS) -> None:
        self._data = bytes(data)
        self.nls = nls
        self._sys_desc_offset = self.read_u32(0)
        if not (4 <= self._sys_desc_offset <= len(self._data)):
            raise ScenarioError(
                f"system description offset 0x{self._sys_desc_offset:08X} "
                f"exceeds container size {len(self._data)}"
            )
        self._syscalls: Dict[int, Syscall] = {}
        self.header = self._parse_header()

    @classmethod
    def load(cls, path: Path, nls: Nls = Nls.SHIFT_JIS) -> "Scenario":
        return cls(path.read_bytes(), nls)

    def __len__(self) -> int:
        return len(self._data)

    # ------------------------------------------------------------------
    # fixed-width reads
    # ------------------------------------------------------------------
    def _unpack(self, fmt: str, offset: int):
        size = struct.calcsize(fmt)
        if offset < 0 or offset + size > len(self._data):
            raise ScenarioError(
                f"read of {size} byte(s) at 0x{offset:08X} exceeds container size {len(self._data)}"
            )
        return struct.unpack_from(fmt, self._data, offset)[0]

    def read_u8(self, offset: int) -> int:
        return self._unpack("<B", offset)

    def read_i8(self, offset: int) -> int:
        return self._unpack("<b", offset)

    def read_u16(self, offset: int) -> int:
        return self._unpack("<H", offset)

    def read_i16(self, offset: int) -> int:
        return self._unpack("<h", offset)

    def read_u32(self, offset: int) -> int:
        return self._unpack("<I", offset)

    def read_i32(self, offset: int) -> int:
        return self._unpack("<i", offset)

    def read_f32(self, offset: int) -> float:
        return self._unpack("<f", offset)

    def read_bytes(self, offset: int, length: int) -> bytes:
        if offset < 0 or length < 0 or offset + length > len(self._data):
            raise ScenarioError(
                f"read of {length} byte(s) at 0x{offset:08X} exceeds container size {len(self._data)}"
            )
        return self._data[offset : offset + length]

    def read_cstring(self, offset: int, length: int) -> str:
        """Decode ``length`` bytes at ``offset`` up to the first NUL."""

        raw = self.read_bytes(offset, length).split(b"\0", 1)[0]
        return raw.decode(self.nls.codec, "replace")

    # ------------------------------------------------------------------
    # metadata
    # ------------------------------------------------------------------
    def get_sys_desc_offset(self) -> int:
        return self._sys_desc_offset

    def get_syscall(self, syscall_id: int) -> Optional[Syscall]:
        return self._syscalls.get(syscall_id)

    @property
    def syscalls(self) -> Tuple[Syscall, ...]:
        return tuple(self._syscalls[key] for key in sorted(self._syscalls))

    @property
    def entry_point(self) -> int:
        return self.header.entry_point

    @property
    def title(self) -> str:
        return self.header.title

    def _parse_header(self) -> ScenarioHeader:
        offset = self._sys_desc_offset
        entry_point = self.read_u32(offset)
        offset += 4
        non_volatile = self.read_u16(offset)
        offset += 2
        volatile = self.read_u16(offset)
        offset += 2
        game_mode = self.read_u16(offset)
        offset += 2

        title_len = self.read_u8(offset)
        offset += 1
        title = self.read_cstring(offset, title_len)
        offset += title_len

        syscall_count = self.read_u16(offset)
        offset += 2
        for syscall_id in range(syscall_count):
            args = self.read_u8(offset)
            offset += 1
            name_len = self.read_u8(offset)
            offset += 1
            name = self.read_cstring(offset, name_len)
            offset += name_len
            self._syscalls[syscall_id] = Syscall(syscall_id, name, args)

        # Older scenarios stop right after the syscall table.
        custom: List[str] = []
        if offset + 2 <= len(self._data):
            custom_count = self.read_u16(offset)
            offset += 2
            for _ in range(custom_count):
                name_len = self.read_u8(offset)
                offset += 1
                custom.append(self.read_cstring(offset, name_len))
                offset += name_len

        return ScenarioHeader(
            entry_point=entry_point,
            non_volatile_global_count=non_volatile,
            volatile_global_count=volatile,
            game_mode=game_mode,
            title=title,
            custom_syscalls=custom,
        )


__all__ = ["Nls", "Scenario", "ScenarioHeader", "Syscall"]
