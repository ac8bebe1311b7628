"""带名称的二进制序列化库.

每个写出的单元都携带自己的名称和长度. 提供了 NamedStruct 定义、
序列化(dumps)和反序列化(loads)功能, 以及底层的输入/输出归档.
"""

from . import types
from .api import dump, dumps, load, loads
from .archive import NamedBinaryInputArchive, NamedBinaryOutputArchive
from .config import ArchiveConfig
from .exceptions import (
    NamedBinaryDecodeError,
    NamedBinaryEncodeError,
    NamedBinaryError,
    NamedBinaryTypeError,
    NamedBinaryValueError,
    ShortReadError,
    ShortWriteError,
)
from .framing import FramedRecord, encode_record, iter_records, read_record
from .options import ArchiveOption
from .stream import NamedStreamWriter, RecordReader
from .struct import NamedField, NamedStruct
from .types import (
    BOOL,
    BYTES,
    DOUBLE,
    FLOAT,
    INT8,
    INT16,
    INT32,
    INT64,
    LIST,
    SIZE_TAG,
    STRING,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    NamedType,
)

__version__ = "0.1.0"

__all__ = [
    "BOOL",
    "BYTES",
    "DOUBLE",
    "FLOAT",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "LIST",
    "SIZE_TAG",
    "STRING",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "ArchiveConfig",
    "ArchiveOption",
    "FramedRecord",
    "NamedBinaryDecodeError",
    "NamedBinaryEncodeError",
    "NamedBinaryError",
    "NamedBinaryInputArchive",
    "NamedBinaryOutputArchive",
    "NamedBinaryTypeError",
    "NamedBinaryValueError",
    "NamedField",
    "NamedStreamWriter",
    "NamedStruct",
    "NamedType",
    "RecordReader",
    "ShortReadError",
    "ShortWriteError",
    "__version__",
    "dump",
    "dumps",
    "encode_record",
    "iter_records",
    "load",
    "loads",
    "read_record",
    "types",
]
