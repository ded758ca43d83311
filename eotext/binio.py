"""二进制读写辅助：内存缓冲区读取器与原子写文件"""

import os
import struct
import tempfile
from pathlib import Path
from typing import Tuple, Union

from .errors import BoundsError


class ByteReader:
    """在整块内存数据上按偏移读取，越界时抛出 BoundsError"""

    def __init__(self, data: bytes, pos: int = 0):
        self.data = data
        self.pos = pos

    def __len__(self) -> int:
        return len(self.data)

    def tell(self) -> int:
        return self.pos

    def remaining(self) -> int:
        return len(self.data) - self.pos

    def seek(self, pos: int) -> None:
        if pos < 0 or pos > len(self.data):
            raise BoundsError(f"定位超出范围: 0x{pos:X}（缓冲区大小 0x{len(self.data):X}）")
        self.pos = pos

    def skip(self, size: int) -> None:
        self.seek(self.pos + size)

    def peek_byte(self) -> int:
        if self.pos >= len(self.data):
            raise BoundsError(f"读取超出范围: 0x{self.pos:X}")
        return self.data[self.pos]

    def read(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise BoundsError(
                f"读取超出范围: 0x{self.pos:X} + {size} 字节（缓冲区大小 0x{len(self.data):X}）"
            )
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def read_byte(self) -> int:
        return self.read(1)[0]

    def unpack(self, fmt: str) -> Tuple:
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))

    def read_until(self, terminator: int) -> bytes:
        """读取到终止字节为止，返回不含终止字节的数据，并越过终止字节"""
        end = self.data.find(bytes((terminator,)), self.pos)
        if end < 0:
            raise BoundsError(f"从 0x{self.pos:X} 开始的字符串没有终止符")
        chunk = self.data[self.pos:end]
        self.pos = end + 1
        return chunk


def read_file(file_path: Union[str, Path]) -> bytes:
    """读取整个文件，文件不存在时抛出 FileNotFoundError"""
    return Path(file_path).read_bytes()


def write_file_atomic(file_path: Union[str, Path], data: bytes) -> None:
    """先写入同目录的临时文件再替换目标，失败时不会留下写了一半的文件"""
    file_path = Path(file_path)
    fd, tmp = tempfile.mkstemp(prefix=f'.{file_path.name}.', suffix='.tmp', dir=file_path.parent)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        os.replace(tmp, file_path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
