"""输入/输出归档测试.

覆盖 namedbin.archive 模块的核心特性:
1. 节点栈与帧记录输出
2. 空节点省略
3. 名称绑定 (单次使用)
4. 短写/短读错误
5. 读取端的两种模式 (解析记录 / 原始字节)
"""

import io
import struct

import pytest

from namedbin import (
    ArchiveOption,
    NamedBinaryDecodeError,
    NamedBinaryEncodeError,
    NamedBinaryInputArchive,
    NamedBinaryOutputArchive,
    ShortReadError,
    ShortWriteError,
)
from namedbin.framing import encode_record, iter_records

# --- 辅助对象 ---


class ShortSink:
    """每次只接受 n-1 个字节的输出端."""

    def __init__(self) -> None:
        self.data = bytearray()

    def write(self, data: bytes) -> int:
        self.data += data[:-1]
        return len(data) - 1


@pytest.fixture
def sink() -> io.BytesIO:
    """提供一个空的内存输出端."""
    return io.BytesIO()


@pytest.fixture
def archive(sink: io.BytesIO) -> NamedBinaryOutputArchive:
    """提供写入 sink 的输出归档."""
    return NamedBinaryOutputArchive(sink)


def _write_value(
    ar: NamedBinaryOutputArchive, data: bytes, name: str | None = None
) -> None:
    ar.begin_node()
    if name is not None:
        ar.set_next_name(name)
    ar.write_bytes(data)
    ar.end_node()


# --- 1. 节点栈 ---


def test_named_int_wire_bytes(archive, sink) -> None:
    """顶层写入名为 x 的 4 字节整数 42 应得到完整的帧记录."""
    archive.begin_node()
    archive.set_next_name("x")
    archive.write_bytes(struct.pack("=i", 42))
    archive.end_node()

    expected = (
        struct.pack("<Q", 13)
        + struct.pack("<Q", 1)
        + b"x"
        + struct.pack("<Q", 4)
        + struct.pack("=i", 42)
    )
    assert sink.getvalue() == expected


def test_stack_empty_before_and_after(archive) -> None:
    """第一个值之前和最后一个值之后栈应为空."""
    assert archive.depth == 0
    archive.begin_node()
    archive.begin_node()
    assert archive.depth == 2
    archive.end_node()
    archive.end_node()
    assert archive.depth == 0


def test_multiple_writes_accumulate(archive, sink) -> None:
    """同一节点内的多次写入应累积为一条记录."""
    archive.begin_node()
    archive.write_bytes(b"\x01\x02")
    archive.write_bytes(b"\x03")
    archive.end_node()

    assert sink.getvalue() == encode_record("", b"\x01\x02\x03")


def test_write_bytes_with_size(archive, sink) -> None:
    """write_bytes() 应只写入指定数量的字节."""
    archive.begin_node()
    archive.write_bytes(b"\x01\x02\x03\x04", 2)
    archive.end_node()

    assert sink.getvalue() == encode_record("", b"\x01\x02")


def test_children_emitted_in_completion_order(archive, sink) -> None:
    """子节点完成即输出, 不嵌入父节点的负载."""
    archive.begin_node()  # 父节点
    _write_value(archive, b"\x01", "a")
    _write_value(archive, b"\x02", "b")
    archive.write_bytes(b"\x03")
    archive.end_node()

    records = list(iter_records(sink.getvalue()))
    assert [(r.name, r.payload) for r in records] == [
        ("a", b"\x01"),
        ("b", b"\x02"),
        ("", b"\x03"),
    ]


def test_node_context_manager(archive, sink) -> None:
    """node() 上下文管理器应在退出时结束节点."""
    with archive.node():
        archive.set_next_name("v")
        archive.write_bytes(b"\x07")

    assert archive.depth == 0
    assert sink.getvalue() == encode_record("v", b"\x07")


def test_node_context_manager_error_aborts(archive, sink) -> None:
    """块内异常时节点不应被写出."""
    with pytest.raises(RuntimeError), archive.node():
        archive.write_bytes(b"\x07")
        raise RuntimeError("boom")

    assert sink.getvalue() == b""
    assert archive.depth == 1


def test_write_without_node(archive) -> None:
    """没有打开的节点时写入应报错."""
    with pytest.raises(NamedBinaryEncodeError, match="No open node"):
        archive.write_bytes(b"\x00")


def test_end_without_node(archive) -> None:
    """没有打开的节点时结束节点应报错."""
    with pytest.raises(NamedBinaryEncodeError, match="No open node"):
        archive.end_node()


def test_sink_not_closed(archive, sink) -> None:
    """归档不应关闭调用方提供的输出端."""
    _write_value(archive, b"\x01")
    del archive
    assert not sink.closed


# --- 2. 空节点省略 ---


def test_empty_node_elided(archive, sink) -> None:
    """负载为空的节点不产生任何输出, 包括名称."""
    archive.begin_node()
    archive.set_next_name("empty")
    archive.end_node()

    assert sink.getvalue() == b""


def test_empty_siblings_elided(archive, sink) -> None:
    """连续两个空的兄弟节点都不产生输出."""
    for _ in range(2):
        archive.begin_node()
        archive.end_node()
        assert sink.getvalue() == b""


def test_zero_length_write_elided(archive, sink) -> None:
    """只写入 0 字节的节点同样被省略."""
    _write_value(archive, b"", "nothing")

    assert sink.getvalue() == b""


def test_empty_parent_with_child(archive, sink) -> None:
    """父节点本身为空时只输出子节点."""
    archive.begin_node()
    _write_value(archive, b"\x01", "child")
    archive.end_node()

    assert sink.getvalue() == encode_record("child", b"\x01")


# --- 3. 名称绑定 ---


def test_second_name_wins(archive, sink) -> None:
    """连续设置两次名称时只有第二个生效."""
    archive.begin_node()
    archive.set_next_name("first")
    archive.set_next_name("second")
    archive.write_bytes(b"\x01")
    archive.end_node()

    assert sink.getvalue() == encode_record("second", b"\x01")


def test_name_consumed_once(archive, sink) -> None:
    """名称被一次写入消耗后, 下一个节点不再带名称."""
    _write_value(archive, b"\x01", "a")
    _write_value(archive, b"\x02")

    records = list(iter_records(sink.getvalue()))
    assert [r.name for r in records] == ["a", ""]


def test_name_bound_once_per_node(archive, sink) -> None:
    """节点的名称只在第一次写入时绑定."""
    archive.begin_node()
    archive.set_next_name("a")
    archive.write_bytes(b"\x01")
    archive.set_next_name("b")
    archive.write_bytes(b"\x02")
    archive.end_node()
    _write_value(archive, b"\x03")

    records = list(iter_records(sink.getvalue()))
    assert [(r.name, r.payload) for r in records] == [
        ("a", b"\x01\x02"),
        ("", b"\x03"),
    ]


def test_unused_name_discarded(archive, sink) -> None:
    """未被消耗的名称不会报错."""
    archive.set_next_name("unused")
    assert sink.getvalue() == b""


# --- 4. 短写 ---


def test_short_write_into_node(archive) -> None:
    """数据少于请求的字节数时应抛出 ShortWriteError."""
    archive.begin_node()

    with pytest.raises(ShortWriteError) as exc_info:
        archive.write_bytes(b"ab", 4)

    assert exc_info.value.requested == 4
    assert exc_info.value.actual == 2


def test_short_write_to_sink() -> None:
    """输出端写入字节不足时应抛出 ShortWriteError."""
    ar = NamedBinaryOutputArchive(ShortSink())
    ar.begin_node()
    ar.write_bytes(b"\x01")

    with pytest.raises(ShortWriteError) as exc_info:
        ar.end_node()

    record_size = len(encode_record("", b"\x01"))
    assert exc_info.value.requested == record_size
    assert exc_info.value.actual == record_size - 1


# --- 5. 读取端 ---


def test_reader_framed_round_trip(archive, sink) -> None:
    """读取端应按写入顺序恢复原始字节."""
    _write_value(archive, struct.pack("=i", 42), "x")
    _write_value(archive, struct.pack("=d", 1.5))

    reader = NamedBinaryInputArchive(io.BytesIO(sink.getvalue()))
    reader.begin_node()
    assert struct.unpack("=i", reader.read_bytes(4))[0] == 42
    reader.end_node()
    assert reader.last_name == "x"
    reader.begin_node()
    assert struct.unpack("=d", reader.read_bytes(8))[0] == 1.5
    reader.end_node()
    assert reader.last_name == ""


def test_reader_multiple_reads_per_record(archive, sink) -> None:
    """同一节点内的多次读取应依次消耗同一条记录."""
    _write_value(archive, b"\x01\x02\x03\x04")

    reader = NamedBinaryInputArchive(io.BytesIO(sink.getvalue()))
    with reader.node():
        assert reader.read_bytes(1) == b"\x01"
        assert reader.read_bytes(3) == b"\x02\x03\x04"


def test_reader_empty_node_consumes_nothing(archive, sink) -> None:
    """从未读取的节点不消耗输入, 与空节点省略对应."""
    archive.begin_node()
    archive.end_node()
    _write_value(archive, b"\x09")

    reader = NamedBinaryInputArchive(io.BytesIO(sink.getvalue()))
    with reader.node():
        pass
    with reader.node():
        assert reader.read_bytes(0) == b""
    with reader.node():
        assert reader.read_bytes(1) == b"\x09"


def test_reader_names_ignored() -> None:
    """读取端的 set_next_name() 不影响读取."""
    data = encode_record("actual", b"\x05")

    reader = NamedBinaryInputArchive(io.BytesIO(data))
    with reader.node():
        reader.set_next_name("other")
        assert reader.read_bytes(1) == b"\x05"


def test_reader_short_read_in_record() -> None:
    """读取超过记录负载时应抛出 ShortReadError."""
    reader = NamedBinaryInputArchive(io.BytesIO(encode_record("", b"\x01\x02")))
    reader.begin_node()

    with pytest.raises(ShortReadError) as exc_info:
        reader.read_bytes(4)

    assert exc_info.value.requested == 4
    assert exc_info.value.actual == 2


def test_reader_short_read_at_eof() -> None:
    """输入结束时读取应抛出 ShortReadError."""
    reader = NamedBinaryInputArchive(io.BytesIO(b""))
    reader.begin_node()

    with pytest.raises(ShortReadError):
        reader.read_bytes(1)


def test_reader_unread_payload() -> None:
    """节点结束时记录仍有剩余负载应报错."""
    reader = NamedBinaryInputArchive(io.BytesIO(encode_record("v", b"\x00" * 8)))
    reader.begin_node()
    reader.read_bytes(4)

    with pytest.raises(NamedBinaryDecodeError, match="4 unread"):
        reader.end_node()


def test_reader_allow_partial_record() -> None:
    """ALLOW_PARTIAL_RECORD 选项下允许剩余负载."""
    reader = NamedBinaryInputArchive(
        io.BytesIO(encode_record("v", b"\x00" * 8)),
        option=ArchiveOption.ALLOW_PARTIAL_RECORD,
    )
    reader.begin_node()
    reader.read_bytes(4)
    reader.end_node()

    assert reader.depth == 0


def test_reader_without_node() -> None:
    """默认模式下没有打开的节点时读取应报错."""
    reader = NamedBinaryInputArchive(io.BytesIO(encode_record("", b"\x01")))

    with pytest.raises(NamedBinaryDecodeError, match="No open node"):
        reader.read_bytes(1)


def test_reader_raw_mode() -> None:
    """RAW_READ 模式下直接按调用顺序读取原始字节."""
    raw = struct.pack("=d", 2.25) + struct.pack("=i", 7)

    reader = NamedBinaryInputArchive(io.BytesIO(raw), option=ArchiveOption.RAW_READ)

    assert struct.unpack("=d", reader.read_bytes(8))[0] == 2.25
    with reader.node():
        assert struct.unpack("=i", reader.read_bytes(4))[0] == 7
    with pytest.raises(ShortReadError):
        reader.read_bytes(1)


def test_reader_raw_mode_sees_framing() -> None:
    """RAW_READ 模式不解析头部, 读取到的是 totalLength 字段."""
    data = encode_record("x", struct.pack("=i", 42))

    reader = NamedBinaryInputArchive(io.BytesIO(data), option=ArchiveOption.RAW_READ)

    assert struct.unpack("<Q", reader.read_bytes(8))[0] == 13
