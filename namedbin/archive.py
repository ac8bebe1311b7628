"""带名称的二进制输入/输出归档.

输出归档维护一个节点栈, 每一层值嵌套对应一个节点. 原始写入追加到栈顶节点的
缓冲区中, 节点结束时被编码为帧记录并立即写入输出端 (负载为空的节点被省略).
记录按完成顺序平铺在输出中, 不会嵌入父节点的负载.

输入归档按与写入时相同的调用顺序读取原始值.

注意: 本格式不保证不同字节序架构之间的可移植性, 原始值按本机字节序保存.
"""

import contextlib
from collections.abc import Generator
from typing import IO

from .config import ArchiveConfig
from .exceptions import (
    NamedBinaryDecodeError,
    NamedBinaryEncodeError,
    ShortReadError,
    ShortWriteError,
)
from .framing import FramedRecord, encode_record, read_record
from .log import logger
from .options import ArchiveOption


class Node:
    """写入端的一个打开的节点."""

    __slots__ = ("buffer", "payload_size", "name", "bound")

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.payload_size = 0
        self.name = ""
        self.bound = False  # 名称只在第一次写入时绑定


class NamedBinaryOutputArchive:
    """以紧凑的带名称二进制格式输出数据的归档.

    输出端由调用方提供并管理生命周期, 归档不会关闭它.

    Examples:
        >>> import io, struct
        >>> buf = io.BytesIO()
        >>> ar = NamedBinaryOutputArchive(buf)
        >>> ar.begin_node()
        >>> ar.set_next_name("x")
        >>> ar.write_bytes(struct.pack("<i", 42))
        >>> ar.end_node()
        >>> buf.getvalue()[:8]
        b'\\r\\x00\\x00\\x00\\x00\\x00\\x00\\x00'
    """

    def __init__(
        self,
        stream: IO[bytes],
        option: ArchiveOption = ArchiveOption.NONE,
    ) -> None:
        """初始化输出归档.

        Args:
            stream: 输出端. 可以是 BytesIO, 以二进制模式打开的文件等.
            option: 归档选项.
        """
        self._stream = stream
        self._config = ArchiveConfig.from_params(option=option)
        self._nodes: list[Node] = []
        self._next_name: str | None = None

    @property
    def depth(self) -> int:
        """当前打开的节点数."""
        return len(self._nodes)

    def set_next_name(self, name: str) -> None:
        """设置下一次写入要绑定的名称."""
        self._next_name = name

    def begin_node(self) -> None:
        """压入一个新的空节点."""
        self._nodes.append(Node())

    def write_bytes(
        self, data: bytes | bytearray | memoryview, size: int | None = None
    ) -> None:
        """将 size 字节追加到当前节点.

        Args:
            data: 要写入的数据.
            size: 要写入的字节数, 默认为 data 的全部长度.

        Raises:
            NamedBinaryEncodeError: 没有打开的节点.
            ShortWriteError: 实际追加的字节数少于 size.
        """
        if not self._nodes:
            raise NamedBinaryEncodeError("No open node to write into")
        node = self._nodes[-1]

        if not node.bound:
            node.name = self._next_name or ""
            node.bound = True
        self._next_name = None

        if size is None:
            size = len(data)
        chunk = memoryview(data).cast("B")[:size]
        node.buffer += chunk
        node.payload_size += len(chunk)
        if len(chunk) != size:
            raise ShortWriteError(
                f"Failed to write {size} bytes to node buffer! Wrote {len(chunk)}",
                requested=size,
                actual=len(chunk),
            )

    def end_node(self) -> None:
        """弹出当前节点, 将其编码为帧记录写入输出端.

        负载为空的节点直接丢弃, 不产生任何输出.

        Raises:
            NamedBinaryEncodeError: 没有打开的节点.
            ShortWriteError: 输出端写入的字节数不足.
        """
        if not self._nodes:
            raise NamedBinaryEncodeError("No open node to finish")
        node = self._nodes.pop()

        if node.payload_size == 0:
            logger.debug("Elided empty node %r at depth %d", node.name, self.depth)
            return

        record = encode_record(node.name, node.buffer)
        written = self._stream.write(record)
        # 部分文件类对象 (如某些原始流) 返回 None
        if written is not None and written != len(record):
            raise ShortWriteError(
                f"Failed to write {len(record)} bytes to output stream! "
                f"Wrote {written}",
                requested=len(record),
                actual=written,
            )
        logger.debug(
            "Emitted node %r (%d payload bytes) at depth %d",
            node.name,
            node.payload_size,
            self.depth,
        )

    @contextlib.contextmanager
    def node(self) -> Generator[None, None, None]:
        """在 with 块内打开一个节点.

        块内抛出异常时节点不会被写出, 会话视为已中止.
        """
        self.begin_node()
        yield
        self.end_node()


class _ReadFrame:
    """读取端的一个打开的节点."""

    __slots__ = ("record", "offset")

    def __init__(self) -> None:
        self.record: FramedRecord | None = None
        self.offset = 0

    @property
    def remaining(self) -> int:
        if self.record is None:
            return 0
        return self.record.payload_length - self.offset


class NamedBinaryInputArchive:
    """读取由 `NamedBinaryOutputArchive` 保存的数据的归档.

    读取顺序必须与写入顺序一一对应, 名称不用于定位或校验字段.

    默认模式下, 节点内第一次非空读取会从输入端加载下一条帧记录, 之后该节点的
    读取都从这条记录的负载中获取. 从未读取的节点不消耗任何输入, 与写入端的
    空节点省略相对应.

    使用 `ArchiveOption.RAW_READ` 时不解析记录头部, 直接按调用顺序读取原始字节.
    """

    def __init__(
        self,
        stream: IO[bytes],
        option: ArchiveOption = ArchiveOption.NONE,
        max_record_size: int | None = None,
    ) -> None:
        """初始化输入归档.

        Args:
            stream: 输入端.
            option: 归档选项.
            max_record_size: 单条记录名称或负载允许的最大字节数.
        """
        self._stream = stream
        self._config = ArchiveConfig.from_params(
            option=option, max_record_size=max_record_size
        )
        self._frames: list[_ReadFrame] = []
        self._last_name: str | None = None

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def last_name(self) -> str | None:
        """最近加载的记录的名称 (仅用于诊断)."""
        return self._last_name

    def set_next_name(self, name: str) -> None:
        """读取端不使用名称."""

    def begin_node(self) -> None:
        self._frames.append(_ReadFrame())

    def end_node(self) -> None:
        """弹出当前节点.

        Raises:
            NamedBinaryDecodeError: 没有打开的节点, 或记录中仍有未读取的负载.
        """
        if not self._frames:
            raise NamedBinaryDecodeError("No open node to finish")
        frame = self._frames.pop()
        if frame.remaining and not self._config.allow_partial_record:
            assert frame.record is not None
            raise NamedBinaryDecodeError(
                f"Record {frame.record.name!r} has {frame.remaining} unread "
                f"payload bytes"
            )

    def read_bytes(self, size: int) -> bytes:
        """读取恰好 size 字节.

        Raises:
            ShortReadError: 可用数据少于 size.
            NamedBinaryDecodeError: 记录头部无效, 或没有打开的节点.
        """
        if size == 0:
            return b""
        if self._config.raw_read:
            return self._read_raw(size)

        if not self._frames:
            raise NamedBinaryDecodeError("No open node to read from")
        frame = self._frames[-1]
        if frame.record is None:
            frame.record = read_record(self._stream, self._config.max_record_size)
            self._last_name = frame.record.name

        record = frame.record
        data = record.payload[frame.offset : frame.offset + size]
        frame.offset += len(data)
        if len(data) != size:
            raise ShortReadError(
                f"Failed to read {size} bytes from record {record.name!r}! "
                f"Read {len(data)}",
                requested=size,
                actual=len(data),
            )
        return data

    def _read_raw(self, size: int) -> bytes:
        data = self._stream.read(size) or b""
        if len(data) != size:
            raise ShortReadError(
                f"Failed to read {size} bytes from input stream! Read {len(data)}",
                requested=size,
                actual=len(data),
            )
        return data

    @contextlib.contextmanager
    def node(self) -> Generator[None, None, None]:
        """在 with 块内打开一个节点."""
        self.begin_node()
        yield
        self.end_node()
