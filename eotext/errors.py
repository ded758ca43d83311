"""eotext 的错误类型"""


class EOTextError(Exception):
    """本包抛出的所有错误的基类"""


class FormatError(EOTextError):
    """文件结构不符合格式：魔数、版本、计数或字符数据无效"""


class BoundsError(FormatError):
    """读取或定位超出了缓冲区范围"""


class UnknownTokenError(EOTextError):
    """编码时遇到既不是别名也不是 [XX YY] 形式的控制码标记"""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"无法识别的控制码标记: [{token}]")


class EncodingError(EOTextError):
    """文本中有无法以存储形式编码的字符"""
