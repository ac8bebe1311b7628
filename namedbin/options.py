"""归档读写的配置选项.

该模块定义了用于控制输入/输出归档行为的选项标志.
"""

from enum import IntFlag


class ArchiveOption(IntFlag):
    """归档配置选项标志.

    可以使用位运算组合多个选项:
        option = ArchiveOption.RAW_READ | ArchiveOption.ALLOW_PARTIAL_RECORD
    """

    # 默认行为: 读取端解析记录头部并按记录提供负载
    NONE = 0x0000

    # 不解析记录头部, 按调用顺序直接从输入端读取原始字节
    RAW_READ = 0x0001

    # 允许节点结束时记录中仍有未读取的负载
    ALLOW_PARTIAL_RECORD = 0x0002
