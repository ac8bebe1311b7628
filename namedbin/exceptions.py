"""namedbin 特定的异常类.

该模块为 namedbin 库定义了异常层次结构.
"""


class NamedBinaryError(Exception):
    """所有 namedbin 异常的基类."""

    pass


class NamedBinaryEncodeError(NamedBinaryError):
    """序列化失败时抛出.

    Case:
        - 没有打开的节点时写入数据.
        - 值超出指定类型的范围 (如 `INT8` 存了 300).
        - 循环引用.
    """

    pass


class NamedBinaryDecodeError(NamedBinaryError):
    """反序列化失败时抛出.

    Case:
        - 输入数据被截断.
        - 记录头部长度不一致.
        - 记录中还有未读取的负载.
    """

    def __init__(
        self,
        msg: str,
        loc: list[str | int] | None = None,
    ) -> None:
        """初始化解码错误.

        Args:
            msg: 错误描述信息.
            loc: 错误发生的位置路径 (字段名 或 索引).
        """
        super().__init__(msg)
        self.loc = loc or []

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.loc:
            loc_str = ".".join(str(x) for x in self.loc)
            return f"{base_msg} (at {loc_str})"
        return base_msg


class ShortWriteError(NamedBinaryEncodeError):
    """输出端接受的字节数少于请求的字节数时抛出."""

    def __init__(self, msg: str, requested: int, actual: int) -> None:
        super().__init__(msg)
        self.requested = requested
        self.actual = actual


class ShortReadError(NamedBinaryDecodeError):
    """输入端提供的字节数少于请求的字节数时抛出.

    会话从失败位置起视为损坏, 不会回滚已读取的数据.
    """

    def __init__(
        self,
        msg: str,
        requested: int,
        actual: int,
        loc: list[str | int] | None = None,
    ) -> None:
        super().__init__(msg, loc)
        self.requested = requested
        self.actual = actual


class NamedBinaryTypeError(NamedBinaryEncodeError, TypeError):
    """类型不匹配时抛出."""

    pass


class NamedBinaryValueError(NamedBinaryEncodeError, ValueError):
    """值无效时抛出 (如超出范围)."""

    pass
