"""线格式常量."""

# 每个长度字段的宽度 (totalLength / nameLength / payloadLength)
LENGTH_FIELD_SIZE = 8

# 长度字段可表示的最大值
MAX_LENGTH = (1 << (8 * LENGTH_FIELD_SIZE)) - 1

# 单条记录名称或负载的默认上限 (防止内存耗尽)
DEFAULT_MAX_RECORD_SIZE = 100 * 1024 * 1024

# 名称的文本编码
NAME_ENCODING = "utf-8"
