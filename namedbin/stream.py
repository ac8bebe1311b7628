"""namedbin 流式处理模块.

该模块提供用于网络协议和流处理的 Writer 和 Reader 类.
帧记录自带 `totalLength` 头部, 因此可以直接从字节流中切分出完整的记录.
"""

from collections.abc import Generator
from typing import Any

from .api import dumps
from .const import DEFAULT_MAX_RECORD_SIZE, LENGTH_FIELD_SIZE
from .exceptions import NamedBinaryDecodeError
from .framing import FramedRecord, decode_record, unpack_length
from .options import ArchiveOption


class NamedStreamWriter:
    """流式写入器.

    允许增量序列化多个值到同一个缓冲区.
    """

    def __init__(self, option: ArchiveOption = ArchiveOption.NONE):
        self._option = option
        self._buffer = bytearray()

    def pack(self, obj: Any, kind: Any = None, name: str | None = None) -> None:
        """序列化对象并追加到缓冲区."""
        self._buffer.extend(dumps(obj, kind, name=name, option=self._option))

    def write(self, obj: Any, kind: Any = None, name: str | None = None) -> None:
        """序列化对象并追加到缓冲区."""
        self.pack(obj, kind, name)

    def pack_bytes(self, data: bytes) -> None:
        """直接追加原始字节."""
        self._buffer.extend(data)

    def get_buffer(self) -> bytes:
        """获取缓冲区数据的副本."""
        return bytes(self._buffer)

    def clear(self) -> None:
        """清空缓冲区."""
        self._buffer.clear()


class RecordReader:
    """帧记录读取器.

    自动处理粘包/拆包, 从流中提取完整的帧记录.

    Usage:
        >>> reader = RecordReader()
        >>> reader.feed(received_bytes)
        >>> for record in reader:
        ...     process(record.name, record.payload)
    """

    def __init__(
        self,
        max_buffer_size: int = 10 * 1024 * 1024,  # 10MB
        max_record_size: int = DEFAULT_MAX_RECORD_SIZE,
    ):
        """初始化记录读取器.

        Args:
            max_buffer_size: 最大缓冲区大小 (防止内存耗尽).
            max_record_size: 单条记录名称或负载允许的最大字节数.
        """
        self._buffer = bytearray()
        self._max_buffer_size = max_buffer_size
        self._max_record_size = max_record_size

    @property
    def pending(self) -> int:
        """缓冲区中尚未组成完整记录的字节数."""
        return len(self._buffer)

    def feed(self, data: bytes | bytearray | memoryview) -> None:
        """输入数据到内部缓冲区."""
        if len(self._buffer) + len(data) > self._max_buffer_size:
            raise BufferError("RecordReader buffer exceeded max size")
        self._buffer.extend(data)

    def __iter__(self) -> Generator[FramedRecord, None, None]:
        """从缓冲区解析所有完整的记录.

        Yields:
            FramedRecord: 解析出的记录.
        """
        while True:
            # 1. 检查是否有足够数据读取 totalLength
            if len(self._buffer) < LENGTH_FIELD_SIZE:
                break

            # 2. 记录总大小 = totalLength 字段 + nameLength 字段 + totalLength
            total_length = unpack_length(self._buffer[:LENGTH_FIELD_SIZE])
            if total_length > 2 * self._max_record_size + LENGTH_FIELD_SIZE:
                raise NamedBinaryDecodeError(
                    f"Record too large: totalLength {total_length}"
                )
            record_size = total_length + 2 * LENGTH_FIELD_SIZE

            # 3. 检查是否有完整记录
            if len(self._buffer) < record_size:
                break

            # 4. 解码 (校验头部一致性)
            record, consumed = decode_record(
                self._buffer[:record_size], max_record_size=self._max_record_size
            )

            # 5. 消耗缓冲区
            del self._buffer[:consumed]
            yield record
