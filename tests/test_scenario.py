import struct
from pathlib import Path

import pytest

from hcbdisasm.errors import ScenarioError
from hcbdisasm.scenario import Nls, Scenario, Syscall


def test_header_and_syscall_table(builder) -> None:
    builder.init_stack(0, 0)
    builder.op(4)
    data = builder.build(
        syscalls=[("TextPrint", 2), ("Wait", 1)],
        title="雪の日",
        entry_point=4,
        custom_syscalls=["Extra"],
    )
    scenario = Scenario(data, Nls.SHIFT_JIS)

    assert scenario.get_sys_desc_offset() == 8
    assert scenario.entry_point == 4
    assert scenario.title == "雪の日"
    assert scenario.header.non_volatile_global_count == 16
    assert scenario.header.volatile_global_count == 8
    assert scenario.header.game_mode == 1
    assert scenario.header.custom_syscalls == ["Extra"]
    assert scenario.get_syscall(0) == Syscall(0, "TextPrint", 2)
    assert scenario.get_syscall(1).args == 1
    assert scenario.get_syscall(2) is None
    assert [syscall.name for syscall in scenario.syscalls] == ["TextPrint", "Wait"]


def test_fixed_width_reads_are_little_endian() -> None:
    payload = struct.pack("<bBhHiIf", -2, 0xFE, -300, 0xBEEF, -70000, 0xDEADBEEF, 2.5)
    data = struct.pack("<I", 4 + len(payload)) + payload
    data += struct.pack("<IHHHB", 0, 0, 0, 0, 0) + struct.pack("<H", 0)
    scenario = Scenario(data)

    assert scenario.read_i8(4) == -2
    assert scenario.read_u8(5) == 0xFE
    assert scenario.read_i16(6) == -300
    assert scenario.read_u16(8) == 0xBEEF
    assert scenario.read_i32(10) == -70000
    assert scenario.read_u32(14) == 0xDEADBEEF
    assert scenario.read_f32(18) == 2.5


def test_cstring_uses_selected_encoding(builder) -> None:
    builder.push_string("你好", codec="gbk")
    data = builder.build(codec="gbk")
    scenario = Scenario(data, Nls.GBK)

    length = scenario.read_u8(5)
    assert scenario.read_cstring(6, length) == "你好"


def test_missing_custom_syscall_block_is_tolerated(builder) -> None:
    data = builder.build()
    # drop the trailing custom syscall count
    scenario = Scenario(data[:-2])
    assert scenario.header.custom_syscalls == []


def test_out_of_range_reads_raise(builder) -> None:
    scenario = Scenario(builder.build())
    with pytest.raises(ScenarioError):
        scenario.read_u32(len(scenario) - 2)
    with pytest.raises(ScenarioError):
        scenario.read_bytes(-1, 2)


def test_bad_system_description_offset() -> None:
    with pytest.raises(ScenarioError):
        Scenario(struct.pack("<I", 0x1000))


def test_load_from_path(tmp_path: Path, builder) -> None:
    path = tmp_path / "sample.hcb"
    path.write_bytes(builder.build(title="file"))
    assert Scenario.load(path).title == "file"


@pytest.mark.parametrize(
    "token, expected",
    [
        ("shift_jis", Nls.SHIFT_JIS),
        ("Shift-JIS", Nls.SHIFT_JIS),
        ("sjis", Nls.SHIFT_JIS),
        ("gbk", Nls.GBK),
        ("utf8", Nls.UTF8),
        ("utf-8", Nls.UTF8),
    ],
)
def test_nls_parse(token: str, expected: Nls) -> None:
    assert Nls.parse(token) is expected


def test_nls_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        Nls.parse("latin1")
