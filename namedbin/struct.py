"""namedbin 结构体定义模块."""

import types as stdlib_types
from typing import (
    Any,
    ClassVar,
    TypeVar,
    Union,
    cast,
    get_args,
    get_origin,
)

from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined
from typing_extensions import Self, dataclass_transform

from .options import ArchiveOption
from .types import (
    BOOL,
    BYTES,
    DOUBLE,
    INT64,
    LIST,
    STRING,
    NamedType,
    is_kind,
)

S = TypeVar("S", bound="NamedStruct")


def NamedField(
    default: Any = PydanticUndefined,
    *,
    name: str | None = None,
    kind: Any = None,
    default_factory: Any | None = None,
) -> Any:
    """创建结构体字段配置.

    这是 Pydantic `Field` 的包装函数, 用于注入序列化所需的元数据.
    不使用 `NamedField` 的普通字段会按属性名和类型注解自动推断.

    Args:
        default: 字段的静态默认值.
        name: 写入流中的名称, 默认为属性名.
        kind: [可选] 显式指定线上类型, 覆盖由类型注解推断的类型.
            例如: Python `int` 默认推断为 `INT64`, 指定 `types.INT32` 可强制编码为 4 字节.
        default_factory: 用于生成默认值的无参可调用对象.

    Returns:
        Any: 包含元数据的 Pydantic FieldInfo 对象.

    Raises:
        TypeError: 如果 `kind` 不是有效的线上类型.

    Examples:
        >>> from namedbin import NamedStruct, NamedField, types
        >>> class Point(NamedStruct):
        ...     x: int = NamedField(kind=types.INT32)
        ...     y: int = NamedField(0, name="coord_y", kind=types.INT32)
        ...     tags: list[str] = NamedField(default_factory=list)
    """
    if kind is not None and not is_kind(kind):
        raise TypeError(f"Invalid kind: {kind!r}")

    json_schema_extra = {
        "wire_name": name,
        "kind": kind,
    }

    kwargs: dict[str, Any] = {
        "json_schema_extra": json_schema_extra,
    }

    if default is not PydanticUndefined:
        kwargs["default"] = default

    if default_factory is not None:
        kwargs["default_factory"] = default_factory

    return cast(Any, Field)(**kwargs)


def infer_kind(annotation: Any) -> Any:
    """从类型注解推断线上类型, 无法推断时返回 None."""
    origin = get_origin(annotation)

    if origin is Union or origin is stdlib_types.UnionType:
        raise TypeError(f"Union type not supported: {annotation}")

    if origin is list:
        args = get_args(annotation)
        if len(args) == 1:
            item = infer_kind(args[0])
            if item is not None:
                return LIST[item]
        return None
    if origin is not None:
        return None

    if isinstance(annotation, type):
        if issubclass(annotation, NamedStruct) or issubclass(annotation, NamedType):
            return annotation if is_kind(annotation) else None

    if annotation is bool:
        return BOOL
    if annotation is int:
        return INT64
    if annotation is float:
        return DOUBLE
    if annotation is str:
        return STRING
    if annotation is bytes:
        return BYTES

    return None


class NamedModelField:
    """表示一个 NamedStruct 模型字段的元数据."""

    __slots__ = ("attr", "wire_name", "kind")

    def __init__(self, attr: str, wire_name: str, kind: Any):
        self.attr = attr
        self.wire_name = wire_name
        self.kind = kind

    @classmethod
    def from_field_info(cls, attr: str, field_info: FieldInfo) -> Self:
        extra = field_info.json_schema_extra
        if not isinstance(extra, dict):
            extra = {}

        wire_name = extra.get("wire_name") or attr
        kind = extra.get("kind")
        if kind is None:
            kind = infer_kind(field_info.annotation)
            if kind is None:
                raise TypeError(
                    f"Unsupported type for field '{attr}': {field_info.annotation}"
                )

        return cls(attr, cast(str, wire_name), kind)

    def __repr__(self) -> str:
        return f"NamedModelField({self.attr!r}, {self.wire_name!r}, {self.kind!r})"


def prepare_fields(fields: dict[str, FieldInfo]) -> dict[str, NamedModelField]:
    """按声明顺序准备字段映射 (即遍历顺序)."""
    named_fields = {}
    for attr, field in fields.items():
        if field.exclude is True:
            continue
        named_fields[attr] = NamedModelField.from_field_info(attr, field)
    return named_fields


@dataclass_transform(kw_only_default=True, field_specifiers=(NamedField,))
class NamedStructMeta(type(BaseModel)):
    """NamedStruct 的元类, 用于收集字段信息."""

    def __new__(  # noqa: D102
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ):
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        if name != "NamedStruct":
            cls.__named_fields__ = prepare_fields(cls.model_fields)
        return cls


class NamedStruct(BaseModel, metaclass=NamedStructMeta):
    """结构体基类.

    继承自 `pydantic.BaseModel`. 序列化时按字段声明顺序遍历, 每个字段在写入
    前绑定其名称. 没有任何非空字段的结构体不产生任何输出.

    Examples:
        >>> from namedbin import NamedStruct, NamedField, types
        >>> class User(NamedStruct):
        ...     uid: int = NamedField(kind=types.UINT32)
        ...     name: str = "anonymous"
        >>> data = User(uid=1001, name="Alice").model_dump_named()
        >>> User.model_validate_named(data).name
        'Alice'
    """

    __named_fields__: ClassVar[dict[str, NamedModelField]] = {}

    def model_dump_named(self, option: ArchiveOption = ArchiveOption.NONE) -> bytes:
        """序列化为带名称的二进制数据."""
        from .api import dumps

        return dumps(self, option=option)

    @classmethod
    def model_validate_named(
        cls: type[S],
        data: bytes | bytearray | memoryview,
        option: ArchiveOption = ArchiveOption.NONE,
    ) -> S:
        """从二进制数据创建实例.

        Raises:
            NamedBinaryDecodeError: 数据解析失败.
            ValidationError: 数据不符合模型定义.
        """
        from .api import loads

        return loads(data, target=cls, option=option)
