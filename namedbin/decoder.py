"""namedbin 解码器实现.

`NamedDecoder` 按与 `NamedEncoder` 完全相同的遍历顺序调用输入归档,
重建原始值. 名称不参与定位, 读取顺序必须与写入顺序一致.
"""

from typing import Any

from .archive import NamedBinaryInputArchive
from .exceptions import NamedBinaryDecodeError
from .log import logger
from .struct import NamedStruct
from .types import (
    BYTES,
    LIST,
    SIZE_TAG,
    STRING,
    PrimitiveType,
    is_kind,
)


class NamedDecoder:
    """与 `NamedEncoder` 对称的递归解码器."""

    __slots__ = ("_archive", "_max_size")

    def __init__(self, archive: NamedBinaryInputArchive, max_size: int | None = None):
        """初始化解码器.

        Args:
            archive: 输入归档.
            max_size: 序列长度标签允许的最大值, 省略时不限制.
        """
        self._archive = archive
        self._max_size = max_size

    def decode(self, kind: Any) -> Any:
        """解码入口.

        Raises:
            NamedBinaryDecodeError: 数据格式错误.
            ShortReadError: 数据不完整.
        """
        if not is_kind(kind):
            raise TypeError(f"Invalid kind: {kind!r}")
        try:
            return self.decode_value(kind)
        except NamedBinaryDecodeError as e:
            logger.error("Decoding failed: %s", e)
            raise

    def decode_value(self, kind: Any) -> Any:
        """解码一个节点对应的值."""
        archive = self._archive
        archive.begin_node()

        if issubclass(kind, PrimitiveType):
            value = kind.unpack(archive.read_bytes(kind.size()))
        elif issubclass(kind, BYTES):
            value = self._decode_binary(kind)
        elif issubclass(kind, LIST):
            value = self._decode_sequence(kind)
        elif issubclass(kind, NamedStruct):
            value = self._decode_struct(kind)
        else:
            raise TypeError(f"Cannot decode kind: {kind!r}")

        archive.end_node()
        return value

    def _decode_size(self) -> int:
        size = self.decode_value(SIZE_TAG)
        if self._max_size is not None and size > self._max_size:
            raise NamedBinaryDecodeError(
                f"Size tag too large: {size} > {self._max_size}"
            )
        return size

    def _decode_binary(self, kind: Any) -> bytes | str:
        size = self._decode_size()
        archive = self._archive
        archive.begin_node()
        data = archive.read_bytes(size)
        archive.end_node()

        if issubclass(kind, STRING):
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise NamedBinaryDecodeError(f"Invalid UTF-8 string: {e}") from e
        return data

    def _decode_sequence(self, kind: Any) -> list[Any]:
        size = self._decode_size()
        items = []
        for index in range(size):
            try:
                items.append(self.decode_value(kind.item))
            except NamedBinaryDecodeError as e:
                e.loc.insert(0, index)
                raise
        return items

    def _decode_struct(self, kind: type[NamedStruct]) -> NamedStruct:
        archive = self._archive
        values: dict[str, Any] = {}
        for attr, field in kind.__named_fields__.items():
            archive.begin_node()
            archive.set_next_name(field.wire_name)
            try:
                values[attr] = self.decode_value(field.kind)
            except NamedBinaryDecodeError as e:
                e.loc.insert(0, field.wire_name)
                raise
            archive.end_node()
        return kind.model_validate(values)
