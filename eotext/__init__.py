"""读写游戏文本表（.tbl）与文本档案（.mbm）"""

from .errors import BoundsError, EncodingError, EOTextError, FormatError, UnknownTokenError
from .mbm import MBM
from .tbl import Table, decode_table, encode_table

__all__ = [
    'BoundsError',
    'EncodingError',
    'EOTextError',
    'FormatError',
    'MBM',
    'Table',
    'UnknownTokenError',
    'decode_table',
    'encode_table',
]
