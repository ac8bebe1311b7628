"""归档配置.

将选项位掩码和数值参数合并为一个不可变对象, 供输入/输出归档共享.
"""

from dataclasses import dataclass

from .const import DEFAULT_MAX_RECORD_SIZE
from .options import ArchiveOption


@dataclass(frozen=True)
class ArchiveConfig:
    """归档运行时配置.

    Attributes:
        option: 选项位掩码.
        max_record_size: 单条记录名称或负载允许的最大字节数.
    """

    option: ArchiveOption = ArchiveOption.NONE
    max_record_size: int = DEFAULT_MAX_RECORD_SIZE

    @classmethod
    def from_params(
        cls,
        option: ArchiveOption | int = ArchiveOption.NONE,
        max_record_size: int | None = None,
    ) -> "ArchiveConfig":
        """从散列参数构建配置."""
        if max_record_size is None:
            max_record_size = DEFAULT_MAX_RECORD_SIZE
        elif max_record_size < 0:
            raise ValueError(f"max_record_size must be >= 0, got {max_record_size}")
        return cls(option=ArchiveOption(option), max_record_size=max_record_size)

    @property
    def raw_read(self) -> bool:
        return bool(self.option & ArchiveOption.RAW_READ)

    @property
    def allow_partial_record(self) -> bool:
        return bool(self.option & ArchiveOption.ALLOW_PARTIAL_RECORD)
