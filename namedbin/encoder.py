"""namedbin 编码器实现.

`NamedEncoder` 遍历 Python 值, 在每个值前后调用归档的 begin/end 钩子,
并把原始写入路由到 `NamedBinaryOutputArchive.write_bytes`.
"""

from typing import Any

from .archive import NamedBinaryOutputArchive
from .exceptions import NamedBinaryEncodeError, NamedBinaryTypeError
from .log import logger
from .struct import NamedStruct
from .types import (
    BOOL,
    BYTES,
    DOUBLE,
    INT64,
    LIST,
    SIZE_TAG,
    STRING,
    PrimitiveType,
    is_kind,
)


def kind_of(value: Any, _seen: set[int] | None = None) -> Any:
    """根据 Python 值推断线上类型."""
    if isinstance(value, NamedStruct):
        return type(value)
    if isinstance(value, bool):
        return BOOL
    if isinstance(value, int):
        return INT64
    if isinstance(value, float):
        return DOUBLE
    if isinstance(value, str):
        return STRING
    if isinstance(value, bytes | bytearray | memoryview):
        return BYTES
    if isinstance(value, list | tuple):
        # 元素类型以第一个元素为准, 空序列只写长度标签
        if not value:
            return LIST[INT64]
        seen = _seen if _seen is not None else set()
        if id(value) in seen:
            raise NamedBinaryEncodeError(f"Circular reference in {type(value)}")
        seen.add(id(value))
        return LIST[kind_of(value[0], seen)]
    raise NamedBinaryTypeError(f"Cannot encode type: {type(value)}")


class NamedEncoder:
    """具有循环引用检测的递归编码器."""

    __slots__ = (
        "_archive",
        "_encoding_stack",
    )

    def __init__(self, archive: NamedBinaryOutputArchive):
        self._archive = archive
        # 跟踪正在编码的容器以检测循环引用
        self._encoding_stack: set[int] = set()

    def encode(self, value: Any, kind: Any = None, name: str | None = None) -> None:
        """编码入口.

        Args:
            value: 要编码的值.
            kind: 线上类型, 省略时由值推断.
            name: 绑定到该值第一次写入的名称.
        """
        try:
            if kind is None:
                kind = kind_of(value)
            elif not is_kind(kind):
                raise NamedBinaryTypeError(f"Invalid kind: {kind!r}")
            if name is not None:
                self._archive.set_next_name(name)
            self.encode_value(value, kind)
        except Exception as e:
            logger.error("Encoding failed: %s", e)
            raise

    def encode_value(self, value: Any, kind: Any) -> None:
        """将单个值编码为一个节点."""
        archive = self._archive
        archive.begin_node()

        if issubclass(kind, PrimitiveType):
            archive.write_bytes(kind.pack(value))
        elif issubclass(kind, BYTES):
            self._encode_binary(value, kind)
        elif issubclass(kind, LIST):
            self._encode_sequence(value, kind)
        elif issubclass(kind, NamedStruct):
            self._encode_struct(value, kind)
        else:
            raise NamedBinaryTypeError(f"Cannot encode kind: {kind!r}")

        archive.end_node()

    def _encode_binary(self, value: Any, kind: Any) -> None:
        if issubclass(kind, STRING):
            if not isinstance(value, str):
                raise NamedBinaryTypeError(
                    f"STRING expects str, got {type(value).__name__}"
                )
            data = value.encode("utf-8")
        elif isinstance(value, bytes | bytearray | memoryview):
            data = bytes(value)
        else:
            raise NamedBinaryTypeError(
                f"BYTES expects bytes-like, got {type(value).__name__}"
            )

        self.encode_value(len(data), SIZE_TAG)
        self._archive.begin_node()
        self._archive.write_bytes(data)
        self._archive.end_node()

    def _encode_sequence(self, value: Any, kind: Any) -> None:
        if not isinstance(value, list | tuple):
            raise NamedBinaryTypeError(
                f"LIST expects list or tuple, got {type(value).__name__}"
            )

        obj_id = id(value)
        if obj_id in self._encoding_stack:
            raise NamedBinaryEncodeError(f"Circular reference in {type(value)}")

        self._encoding_stack.add(obj_id)
        try:
            self.encode_value(len(value), SIZE_TAG)
            for item in value:
                self.encode_value(item, kind.item)
        finally:
            self._encoding_stack.discard(obj_id)

    def _encode_struct(self, value: Any, kind: type[NamedStruct]) -> None:
        if not isinstance(value, kind):
            raise NamedBinaryTypeError(
                f"Expected {kind.__name__}, got {type(value).__name__}"
            )

        archive = self._archive
        for attr, field in kind.__named_fields__.items():
            archive.begin_node()
            archive.set_next_name(field.wire_name)
            self.encode_value(getattr(value, attr), field.kind)
            archive.end_node()
