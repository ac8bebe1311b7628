"""namedbin 数据类型模块.

本模块定义了归档支持的线上类型 (Kind): 定长的原始类型 (INT32、DOUBLE 等)
和变长类型 (BYTES、STRING、LIST).

原始类型按本机字节序打包, 不做跨架构字节序转换.
"""

import abc
import struct
from typing import Any, ClassVar

from .exceptions import NamedBinaryTypeError, NamedBinaryValueError


class NamedType(abc.ABC):
    """线上类型的基类.

    通常用户不需要直接使用此类, 而是使用具体的子类来定义 `NamedStruct`
    的字段类型.
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.any_schema()


class PrimitiveType(NamedType):
    """定长原始类型.

    每个子类通过 `_struct` 指定本机字节序、标准宽度的打包格式.
    """

    _struct: ClassVar[struct.Struct]
    python_type: ClassVar[type] = int

    @classmethod
    def size(cls) -> int:
        """编码后的字节数."""
        return cls._struct.size

    @classmethod
    def pack(cls, value: Any) -> bytes:
        """将值打包为原始字节.

        Raises:
            NamedBinaryTypeError: 值的 Python 类型不匹配.
            NamedBinaryValueError: 值超出范围.
        """
        if not isinstance(value, cls.python_type):
            raise NamedBinaryTypeError(
                f"{cls.__name__} expects {cls.python_type.__name__}, "
                f"got {type(value).__name__}"
            )
        try:
            return cls._struct.pack(value)
        except (struct.error, OverflowError) as e:
            raise NamedBinaryValueError(
                f"{cls.__name__} value out of range: {value!r}"
            ) from e

    @classmethod
    def unpack(cls, data: bytes) -> Any:
        """从原始字节解包值."""
        return cls._struct.unpack(data)[0]


class BOOL(PrimitiveType):
    """布尔值 (1 字节)."""

    _struct = struct.Struct("=?")
    python_type = bool

    @classmethod
    def pack(cls, value: Any) -> bytes:
        # 允许 0/1 整数
        if isinstance(value, int) and not isinstance(value, bool):
            if value not in {0, 1}:
                raise NamedBinaryValueError(f"Invalid BOOL value: {value}")
            value = bool(value)
        return super().pack(value)


class INT8(PrimitiveType):
    """8 位有符号整数."""

    _struct = struct.Struct("=b")


class INT16(PrimitiveType):
    """16 位有符号整数."""

    _struct = struct.Struct("=h")


class INT32(PrimitiveType):
    """32 位有符号整数."""

    _struct = struct.Struct("=i")


class INT64(PrimitiveType):
    """64 位有符号整数."""

    _struct = struct.Struct("=q")


class UINT8(PrimitiveType):
    """8 位无符号整数."""

    _struct = struct.Struct("=B")


class UINT16(PrimitiveType):
    """16 位无符号整数."""

    _struct = struct.Struct("=H")


class UINT32(PrimitiveType):
    """32 位无符号整数."""

    _struct = struct.Struct("=I")


class UINT64(PrimitiveType):
    """64 位无符号整数."""

    _struct = struct.Struct("=Q")


class FLOAT(PrimitiveType):
    """单精度浮点数 (4 字节)."""

    _struct = struct.Struct("=f")
    python_type = float

    @classmethod
    def pack(cls, value: Any) -> bytes:
        if isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        return super().pack(value)


class DOUBLE(FLOAT):
    """双精度浮点数 (8 字节)."""

    _struct = struct.Struct("=d")


# 序列长度标签, 作为普通的 64 位无符号整数写入
SIZE_TAG = UINT64


class BYTES(NamedType):
    """原始字节缓冲区.

    编码为一个 `SIZE_TAG` 值, 随后是一次原始写入.
    """


class STRING(BYTES):
    """UTF-8 字符串, 编码方式同 `BYTES`."""


class LIST(NamedType):
    """带长度标签的序列.

    通过下标指定元素类型:
        >>> LIST[INT32].item is INT32
        True
    """

    item: ClassVar[Any] = None
    _cache: ClassVar[dict[Any, type["LIST"]]] = {}

    def __class_getitem__(cls, item: Any) -> type["LIST"]:
        if item in LIST._cache:
            return LIST._cache[item]
        if not is_kind(item):
            raise TypeError(f"Invalid LIST item kind: {item!r}")
        name = getattr(item, "__name__", repr(item))
        parametrized = type(f"LIST[{name}]", (LIST,), {"item": item})
        LIST._cache[item] = parametrized
        return parametrized


def is_kind(obj: Any) -> bool:
    """判断对象是否为可用的线上类型 (NamedType 子类或 NamedStruct 子类)."""
    if not isinstance(obj, type):
        return False
    if issubclass(obj, PrimitiveType):
        return obj is not PrimitiveType
    if issubclass(obj, LIST):
        return obj.item is not None
    if issubclass(obj, BYTES):
        return True
    from .struct import NamedStruct

    return issubclass(obj, NamedStruct) and obj is not NamedStruct
