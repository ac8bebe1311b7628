"""记录帧编解码.

每个非空节点完成时会被编码为一条帧记录:

    [totalLength:8][nameLength:8][name][payloadLength:8][payload]

所有长度字段均为 8 字节小端无符号整数, 且
`totalLength == payloadLength + nameLength + 8`.
字段之间没有对齐填充.
"""

import struct
from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO

from .const import (
    DEFAULT_MAX_RECORD_SIZE,
    LENGTH_FIELD_SIZE,
    MAX_LENGTH,
    NAME_ENCODING,
)
from .exceptions import (
    NamedBinaryDecodeError,
    NamedBinaryValueError,
    ShortReadError,
)
from .log import get_hexdump, logger

_LENGTH = struct.Struct("<Q")


def pack_length(value: int) -> bytes:
    """将长度编码为 8 字节小端无符号整数."""
    if not 0 <= value <= MAX_LENGTH:
        raise NamedBinaryValueError(f"Length out of range: {value}")
    return _LENGTH.pack(value)


def unpack_length(data: bytes | bytearray | memoryview) -> int:
    """从 8 字节小端数据解码长度."""
    if len(data) != LENGTH_FIELD_SIZE:
        raise NamedBinaryDecodeError(
            f"Length field must be {LENGTH_FIELD_SIZE} bytes, got {len(data)}"
        )
    return _LENGTH.unpack(data)[0]


@dataclass(frozen=True)
class FramedRecord:
    """一条已完成节点的线上表示.

    Attributes:
        name: 绑定到节点的名称 (未绑定时为空字符串).
        payload: 节点累积的负载字节.
    """

    name: str
    payload: bytes

    @property
    def name_bytes(self) -> bytes:
        return self.name.encode(NAME_ENCODING)

    @property
    def name_length(self) -> int:
        return len(self.name_bytes)

    @property
    def payload_length(self) -> int:
        return len(self.payload)

    @property
    def total_length(self) -> int:
        return self.payload_length + self.name_length + LENGTH_FIELD_SIZE

    @property
    def wire_size(self) -> int:
        """记录在线上占用的总字节数 (包含 totalLength 本身)."""
        return self.total_length + 2 * LENGTH_FIELD_SIZE

    def to_bytes(self) -> bytes:
        """编码为线上字节."""
        return encode_record(self.name, self.payload)


def encode_record(name: str, payload: bytes | bytearray | memoryview) -> bytes:
    """将名称和负载编码为一条连续的帧记录."""
    name_bytes = name.encode(NAME_ENCODING)
    payload_length = len(payload)
    total_length = payload_length + len(name_bytes) + LENGTH_FIELD_SIZE

    out = bytearray()
    out += pack_length(total_length)
    out += pack_length(len(name_bytes))
    out += name_bytes
    out += pack_length(payload_length)
    out += payload
    return bytes(out)


def _check_header(
    total_length: int, name_length: int, max_record_size: int
) -> None:
    if name_length > max_record_size:
        raise NamedBinaryDecodeError(
            f"Record name too long: {name_length} > {max_record_size}"
        )
    if total_length < name_length + LENGTH_FIELD_SIZE:
        raise NamedBinaryDecodeError(
            f"Inconsistent record length: total {total_length} "
            f"cannot hold name of {name_length} bytes"
        )
    if total_length - name_length - LENGTH_FIELD_SIZE > max_record_size:
        raise NamedBinaryDecodeError(
            f"Record payload too large: "
            f"{total_length - name_length - LENGTH_FIELD_SIZE} > {max_record_size}"
        )


def _decode_name(data: bytes) -> str:
    try:
        return data.decode(NAME_ENCODING)
    except UnicodeDecodeError as e:
        raise NamedBinaryDecodeError(f"Invalid record name: {e}") from e


def _read_exact(stream: IO[bytes], size: int) -> bytes:
    if size == 0:
        return b""
    data = stream.read(size) or b""
    if len(data) != size:
        raise ShortReadError(
            f"Failed to read {size} bytes from input stream! Read {len(data)}",
            requested=size,
            actual=len(data),
        )
    return data


def read_record(
    stream: IO[bytes], max_record_size: int = DEFAULT_MAX_RECORD_SIZE
) -> FramedRecord:
    """从二进制流读取一条帧记录.

    Args:
        stream: 可读的二进制文件类对象.
        max_record_size: 名称或负载允许的最大字节数.

    Returns:
        FramedRecord: 解析出的记录.

    Raises:
        ShortReadError: 流中数据不足.
        NamedBinaryDecodeError: 头部长度不一致或超出限制.
    """
    total_length = unpack_length(_read_exact(stream, LENGTH_FIELD_SIZE))
    name_length = unpack_length(_read_exact(stream, LENGTH_FIELD_SIZE))
    _check_header(total_length, name_length, max_record_size)

    name = _decode_name(_read_exact(stream, name_length))
    payload_length = unpack_length(_read_exact(stream, LENGTH_FIELD_SIZE))
    if total_length != payload_length + name_length + LENGTH_FIELD_SIZE:
        raise NamedBinaryDecodeError(
            f"Inconsistent record length: total {total_length} != "
            f"payload {payload_length} + name {name_length} + {LENGTH_FIELD_SIZE}"
        )

    payload = _read_exact(stream, payload_length)
    logger.debug(
        "Loaded record %r (%d payload bytes)", name, payload_length
    )
    return FramedRecord(name, payload)


def decode_record(
    data: bytes | bytearray | memoryview,
    offset: int = 0,
    max_record_size: int = DEFAULT_MAX_RECORD_SIZE,
) -> tuple[FramedRecord, int]:
    """从内存缓冲区解码一条帧记录.

    Returns:
        tuple[FramedRecord, int]: (记录, 消耗的字节数).
    """
    view = memoryview(data)[offset:]
    pos = 0

    def take(size: int) -> memoryview:
        nonlocal pos
        chunk = view[pos : pos + size]
        if len(chunk) != size:
            logger.debug(get_hexdump(view, pos))
            raise ShortReadError(
                f"Truncated record: need {size} bytes, have {len(chunk)}",
                requested=size,
                actual=len(chunk),
            )
        pos += size
        return chunk

    total_length = unpack_length(take(LENGTH_FIELD_SIZE))
    name_length = unpack_length(take(LENGTH_FIELD_SIZE))
    try:
        _check_header(total_length, name_length, max_record_size)
    except NamedBinaryDecodeError:
        logger.debug(get_hexdump(view, 0))
        raise

    name = _decode_name(bytes(take(name_length)))
    payload_length = unpack_length(take(LENGTH_FIELD_SIZE))
    if total_length != payload_length + name_length + LENGTH_FIELD_SIZE:
        logger.debug(get_hexdump(view, pos - LENGTH_FIELD_SIZE))
        raise NamedBinaryDecodeError(
            f"Inconsistent record length: total {total_length} != "
            f"payload {payload_length} + name {name_length} + {LENGTH_FIELD_SIZE}"
        )

    payload = bytes(take(payload_length))
    return FramedRecord(name, payload), pos


def iter_records(
    data: bytes | bytearray | memoryview,
    max_record_size: int = DEFAULT_MAX_RECORD_SIZE,
) -> Iterator[FramedRecord]:
    """依次解码完整内存流中的所有记录.

    Raises:
        ShortReadError: 末尾存在不完整的记录.
    """
    offset = 0
    while offset < len(data):
        record, consumed = decode_record(data, offset, max_record_size)
        offset += consumed
        yield record
