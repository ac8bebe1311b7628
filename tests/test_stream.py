"""namedbin 流式处理功能测试.

覆盖 namedbin.stream 模块的核心特性:
1. 基础流写入 (Buffer management)
2. 记录切分 (RecordReader)
3. 网络场景模拟 (粘包、拆包)
4. 边界条件 (Max buffer size, 损坏的头部)
"""

import struct

import pytest

from namedbin import NamedBinaryDecodeError, NamedField, NamedStruct, loads, types
from namedbin.framing import encode_record
from namedbin.stream import NamedStreamWriter, RecordReader

# --- 辅助结构体 ---


class StreamMsg(NamedStruct):
    """用于流传输测试的简单消息."""

    id: int = NamedField(kind=types.INT32)
    data: str


# --- 1. 基础流写入器测试 ---


def test_stream_writer_basic() -> None:
    """NamedStreamWriter 应该能正确缓存和清空数据."""
    writer = NamedStreamWriter()

    writer.write(StreamMsg(id=1, data="a"))
    writer.pack(5, types.UINT8, name="n")
    writer.pack_bytes(b"\xff")

    buf = writer.get_buffer()
    assert buf.endswith(encode_record("n", b"\x05") + b"\xff")

    writer.clear()
    assert writer.get_buffer() == b""


def test_stream_writer_round_trip() -> None:
    """写入器的缓冲区应能被 loads() 还原."""
    writer = NamedStreamWriter()
    writer.pack(StreamMsg(id=2, data="hello"))

    assert loads(writer.get_buffer(), StreamMsg) == StreamMsg(id=2, data="hello")


# --- 2. 记录切分 ---


def test_record_reader_sticky_packets() -> None:
    """一次性喂入多条记录时应全部切分出来 (模拟粘包)."""
    writer = NamedStreamWriter()
    writer.pack(StreamMsg(id=1, data="hi"))
    writer.pack(StreamMsg(id=2, data="yo"))

    reader = RecordReader()
    reader.feed(writer.get_buffer())
    records = list(reader)

    assert [r.name for r in records] == ["id", "data", "", "id", "data", ""]
    assert records[2].payload == b"hi"
    assert records[3].payload == struct.pack("=i", 2)
    assert reader.pending == 0


def test_record_reader_fragmentation() -> None:
    """记录分片到达时应等待完整数据 (模拟拆包)."""
    data = encode_record("long_name", b"\x01" * 20)
    reader = RecordReader()

    reader.feed(data[:5])
    assert list(reader) == []

    reader.feed(data[5:30])
    assert list(reader) == []
    assert reader.pending == 30

    reader.feed(data[30:])
    records = list(reader)
    assert len(records) == 1
    assert records[0].name == "long_name"
    assert reader.pending == 0


def test_record_reader_keeps_partial_tail() -> None:
    """完整记录之后的不完整数据应保留在缓冲区."""
    first = encode_record("a", b"\x01")
    second = encode_record("b", b"\x02")
    reader = RecordReader()

    reader.feed(first + second[:4])

    assert [r.name for r in reader] == ["a"]
    assert reader.pending == 4


# --- 3. 异常边界测试 ---


def test_record_reader_max_buffer() -> None:
    """超过最大缓冲区时应抛出 BufferError."""
    reader = RecordReader(max_buffer_size=5)
    reader.feed(b"123")

    with pytest.raises(BufferError, match="max size"):
        reader.feed(b"456")


def test_record_reader_oversized_header() -> None:
    """totalLength 超出限制时应立即报错, 而不是无限等待."""
    reader = RecordReader(max_record_size=16)
    reader.feed(struct.pack("<Q", 1 << 40))

    with pytest.raises(NamedBinaryDecodeError, match="too large"):
        list(reader)


def test_record_reader_inconsistent_header() -> None:
    """头部长度不一致的记录应报错."""
    bad = (
        struct.pack("<Q", 11)
        + struct.pack("<Q", 1)
        + b"a"
        + struct.pack("<Q", 5)
        + b"\x00" * 2
    )
    reader = RecordReader()
    reader.feed(bad)

    with pytest.raises(NamedBinaryDecodeError, match="Inconsistent"):
        list(reader)
