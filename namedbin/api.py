"""namedbin API 模块.

提供用于序列化和反序列化的高级接口 `dumps`, `loads`, `dump`, `load`.
支持 `NamedStruct` 对象以及 `namedbin.types` 中的线上类型.
"""

import io
from typing import IO, Any, TypeVar, overload

from .archive import NamedBinaryInputArchive, NamedBinaryOutputArchive
from .config import ArchiveConfig
from .decoder import NamedDecoder
from .encoder import NamedEncoder
from .options import ArchiveOption
from .struct import NamedStruct

T = TypeVar("T", bound=NamedStruct)


def dump(
    obj: Any,
    fp: IO[bytes],
    kind: Any = None,
    *,
    name: str | None = None,
    option: ArchiveOption = ArchiveOption.NONE,
) -> None:
    """序列化对象并直接写入文件.

    文件对象由调用方管理, 本函数不会关闭它.

    Args:
        obj: 要序列化的对象.
        fp: 文件类对象, 必须实现 `write(bytes)` 方法.
        kind: 线上类型, 省略时由值推断.
        name: 绑定到该值第一次写入的名称.
        option: 归档选项.
    """
    archive = NamedBinaryOutputArchive(fp, option=option)
    NamedEncoder(archive).encode(obj, kind=kind, name=name)


def dumps(
    obj: Any,
    kind: Any = None,
    *,
    name: str | None = None,
    option: ArchiveOption = ArchiveOption.NONE,
) -> bytes:
    """序列化对象为带名称的二进制数据.

    Args:
        obj: 要序列化的 Python 对象. 支持 `NamedStruct` 实例, int, float, str,
            bytes, list 等.
        kind: 线上类型 (如 `types.INT32`), 省略时由值推断.
        name: 绑定到该值第一次写入的名称.
        option: 归档选项.

    Returns:
        bytes: 序列化后的二进制数据.

    Examples:
        >>> from namedbin import dumps, types
        >>> dumps(42, types.INT32, name="x")[:8].hex()
        '0d00000000000000'
    """
    buf = io.BytesIO()
    dump(obj, buf, kind, name=name, option=option)
    return buf.getvalue()


@overload
def load(
    fp: IO[bytes],
    target: type[T],
    *,
    option: ArchiveOption = ArchiveOption.NONE,
    max_record_size: int | None = None,
) -> T: ...


@overload
def load(
    fp: IO[bytes],
    target: Any,
    *,
    option: ArchiveOption = ArchiveOption.NONE,
    max_record_size: int | None = None,
) -> Any: ...


def load(
    fp: IO[bytes],
    target: Any,
    *,
    option: ArchiveOption = ArchiveOption.NONE,
    max_record_size: int | None = None,
) -> Any:
    """从文件读取并反序列化一个值.

    只消耗该值对应的字节, 可以在同一个文件上连续调用.

    Args:
        fp: 打开的二进制文件对象.
        target: 目标类型 (`NamedStruct` 子类或线上类型).
        option: 归档选项.
        max_record_size: 单条记录允许的最大字节数.

    Returns:
        解析后的对象.
    """
    config = ArchiveConfig.from_params(option=option, max_record_size=max_record_size)
    archive = NamedBinaryInputArchive(
        fp, option=config.option, max_record_size=config.max_record_size
    )
    return NamedDecoder(archive, max_size=config.max_record_size).decode(target)


@overload
def loads(
    data: bytes | bytearray | memoryview,
    target: type[T],
    *,
    option: ArchiveOption = ArchiveOption.NONE,
    max_record_size: int | None = None,
) -> T: ...


@overload
def loads(
    data: bytes | bytearray | memoryview,
    target: Any,
    *,
    option: ArchiveOption = ArchiveOption.NONE,
    max_record_size: int | None = None,
) -> Any: ...


def loads(
    data: bytes | bytearray | memoryview,
    target: Any,
    *,
    option: ArchiveOption = ArchiveOption.NONE,
    max_record_size: int | None = None,
) -> Any:
    """反序列化二进制数据.

    Args:
        data: 输入的二进制数据.
        target: 目标类型.
            - `NamedStruct` 子类: 解析并验证为该结构体实例.
            - 线上类型 (如 `types.INT32`, `types.LIST[types.STRING]`): 解析为对应的 Python 值.
        option: 归档选项 (如 `ArchiveOption.RAW_READ`).
        max_record_size: 单条记录允许的最大字节数.

    Returns:
        解析后的对象.

    Raises:
        NamedBinaryDecodeError: 数据格式错误.
        ShortReadError: 数据不完整.
    """
    return load(
        io.BytesIO(bytes(data)),
        target,
        option=option,
        max_record_size=max_record_size,
    )
