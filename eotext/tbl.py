"""
TBL 文本表编解码器

文件结构（小端序）:
    条目数量       u16 或 u32（与指针宽度相同）
    指针表         条目数量个 u16 或 u32；第一个条目的偏移固定为 0 不写入，
                   最后一个指针指向最后一个条目之后
    字符区         依次存放的 Shift-JIS 字符串，每个以一个 0x00 结尾

读取时不使用指针表，按 0x00 顺序切分字符区即可；写回时根据条目长度重新计算指针。
"""

import logging
import struct
from pathlib import Path
from typing import Iterable, List, Union

from .binio import ByteReader, read_file, write_file_atomic
from .collection import StringCollection
from .errors import FormatError
from .sjis_tables import decode_storage, encode_storage

logger = logging.getLogger(__name__)

# 指针宽度 -> struct 格式
POINTER_FORMATS = {
    2: '<H',
    4: '<I',
}


def _pointer_format(pointer_width: int) -> str:
    try:
        return POINTER_FORMATS[pointer_width]
    except KeyError:
        raise ValueError(f"不支持的指针宽度: {pointer_width}（应为 2 或 4）") from None


def decode_table(data: bytes, pointer_width: int = 2) -> List[str]:
    """将 TBL 文件数据解码为规范形式的字符串列表"""
    fmt = _pointer_format(pointer_width)
    reader = ByteReader(data)

    count = reader.unpack(fmt)[0]
    # 指针表与按 0x00 切分得到的结果重复，直接跳过
    reader.skip(count * pointer_width)

    entries = []
    while reader.remaining():
        entries.append(decode_storage(reader.read_until(0x00)))

    if len(entries) != count:
        raise FormatError(f"条目数量不符: 文件头声明 {count} 个，实际读到 {len(entries)} 个")

    logger.debug("解码 TBL: %d 个条目, 指针宽度 %d", count, pointer_width)
    return entries


def encode_table(entries: Iterable[str], pointer_width: int = 2) -> bytes:
    """将字符串列表编码为 TBL 文件数据"""
    fmt = _pointer_format(pointer_width)
    entries = list(entries)
    encoded = [encode_storage(entry) for entry in entries]

    out = bytearray()
    try:
        out += struct.pack(fmt, len(encoded))

        # 每个指针 = 上一个指针 + 上一个条目的字符数 * 2 + 终止符
        pointer = 0
        for entry in entries:
            pointer += len(entry) * 2 + 1
            out += struct.pack(fmt, pointer)
    except struct.error as e:
        raise FormatError(f"条目数量或偏移超出 {pointer_width} 字节指针的范围") from e

    for raw in encoded:
        out += raw
        out += b'\x00'

    logger.debug("编码 TBL: %d 个条目, %d 字节", len(encoded), len(out))
    return bytes(out)


class Table(StringCollection):
    """TBL 文本表，例如技能名称表"""

    @classmethod
    def from_bytes(cls, data: bytes, pointer_width: int = 2) -> 'Table':
        return cls(decode_table(data, pointer_width))

    @classmethod
    def open(cls, file_path: Union[str, Path], pointer_width: int = 2) -> 'Table':
        """读取 .tbl 文件；pointer_width 为 4 时表示使用长指针的表"""
        return cls.from_bytes(read_file(file_path), pointer_width)

    def to_bytes(self, pointer_width: int = 2) -> bytes:
        return encode_table(self, pointer_width)

    def write_to_file(self, file_path: Union[str, Path], pointer_width: int = 2) -> None:
        # 先完成编码，编码失败时不会碰到目标文件
        data = self.to_bytes(pointer_width)
        write_file_atomic(file_path, data)
