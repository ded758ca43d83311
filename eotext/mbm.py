"""
MBM 文本档案编解码器

文件结构（小端序）:
    0x00  u32   固定为 0
    0x04  4s    魔数 'MSG2'
    0x08  u32   版本，固定为 0x00010000
    0x0C  u32   文件大小（仅供参考）
    0x10  u32   条目数量（不可靠，不用于确定条目表范围）
    0x14  u32   条目表偏移，通常为 0x20
    0x18  u32   保留
    0x1C  u32   保留
    条目表        每个 16 字节: 索引 i32, 长度 u32, 偏移 u32, 保留 u32
    字符区        每个条目为双字节文本与控制码，以 0xFF 0xFF 结尾

长度或偏移为 0 的条目是空条目，解码为 None。
"""

import logging
import struct
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Union

from .binio import ByteReader, read_file, write_file_atomic
from .collection import StringCollection
from .control_codes import (
    CONTROL_CODES,
    VOICE_OPCODE,
    is_control_lead,
    render_opcode,
    render_word,
    resolve_token,
    split_tokens,
)
from .errors import EncodingError, FormatError
from .sjis_tables import decode_storage, encode_storage

logger = logging.getLogger(__name__)


class MBMHeader(NamedTuple):
    zero: int
    magic: bytes
    version: int
    file_size: int
    entry_count: int
    table_offset: int
    reserved1: int
    reserved2: int


class Descriptor(NamedTuple):
    index: int
    length: int
    offset: int
    reserved: int = 0

    @property
    def is_null(self) -> bool:
        return self.length == 0 or self.offset == 0


class MBMCodec:
    """MBM 格式常量"""

    MAGIC = b'MSG2'
    VERSION = 0x00010000
    HEADER_FORMAT = '<I4sIIIIII'
    HEADER_SIZE = 0x20
    DESCRIPTOR_FORMAT = '<iIII'
    DESCRIPTOR_SIZE = 0x10
    END_MARKER = 0xFF
    TERMINATOR = b'\xff\xff'


class MBMDecoder:
    """MBM 文件解码器"""

    def __init__(self, codec: MBMCodec):
        self.codec = codec

    def decode(self, data: bytes) -> 'MBM':
        reader = ByteReader(data)
        header = self._read_header(reader)

        entries: List[Optional[str]] = []
        continuity = False
        descriptors = self._read_descriptors(reader, header.table_offset)
        for descriptor in descriptors:
            if descriptor.is_null:
                entries.append(None)
                # 空条目带有非零索引，说明写回时索引要连续计数
                if descriptor.index != 0:
                    continuity = True
            else:
                entries.append(self._decode_entry(reader, descriptor.offset))

        if header.entry_count != len(entries):
            logger.debug("文件头条目数 %d 与条目表推断的 %d 不一致", header.entry_count, len(entries))
        if header.file_size != len(data):
            logger.debug("文件头大小 0x%X 与实际大小 0x%X 不一致", header.file_size, len(data))
        logger.debug("解码 MBM: %d 个条目, 空条目连续索引=%s", len(entries), continuity)

        mbm = MBM(entries, index_continuity_on_null=continuity)
        mbm.declared_count = header.entry_count
        mbm.size_adjust = header.file_size - len(data)
        return mbm

    def _read_header(self, reader: ByteReader) -> MBMHeader:
        header = MBMHeader(*reader.unpack(self.codec.HEADER_FORMAT))
        if header.magic != self.codec.MAGIC:
            raise FormatError(f"无效的 MBM 魔数: {header.magic!r}，应为 {self.codec.MAGIC!r}")
        if header.version != self.codec.VERSION:
            raise FormatError(f"不支持的 MBM 版本: 0x{header.version:08X}")
        if header.zero or header.reserved1 or header.reserved2:
            logger.debug("MBM 文件头保留字段非零: %r", header)
        return header

    def _read_descriptors(self, reader: ByteReader, table_offset: int) -> List[Descriptor]:
        """
        读取条目表。文件头的条目数不可靠，条目表的结尾由数据布局推断:
        第一个非空条目的字符串偏移就是条目表的结束位置。
        全部为空条目时条目表一直延伸到文件末尾。
        """
        reader.seek(table_offset)
        table_end = len(reader)
        pinned = False
        descriptors = []
        while reader.tell() < table_end:
            descriptor = Descriptor(*reader.unpack(self.codec.DESCRIPTOR_FORMAT))
            if not pinned and not descriptor.is_null:
                pinned = True
                table_end = descriptor.offset
            descriptors.append(descriptor)
        return descriptors

    def _decode_entry(self, reader: ByteReader, offset: int) -> str:
        """解码一个条目，完成后恢复读取位置"""
        stored = reader.tell()
        reader.seek(offset)
        parts: List[str] = []
        while True:
            lead = reader.peek_byte()
            if lead == self.codec.END_MARKER:
                break
            if is_control_lead(lead):
                self._handle_control_code(reader, parts)
            else:
                self._handle_character(reader, parts)
        reader.seek(stored)
        return ''.join(parts)

    def _handle_control_code(self, reader: ByteReader, parts: List[str]) -> None:
        upper, lower = reader.read(2)
        opcode = (upper << 8) | lower
        parts.append(render_opcode(opcode))

        if opcode == VOICE_OPCODE:
            self._handle_voice_path(reader, parts)
            return

        spec = CONTROL_CODES.get(opcode)
        if spec is not None:
            for _ in range(spec.operand_units):
                value_upper, value_lower = reader.read(2)
                parts.append(render_word(value_upper, value_lower))

    def _handle_voice_path(self, reader: ByteReader, parts: List[str]) -> None:
        """语音路径: ASCII 字符串，以两个 0x00 结尾"""
        path = reader.read_until(0x00)
        second = reader.read_byte()
        parts.append(path.decode('latin-1'))
        parts.append(render_word(0x00, second))

    def _handle_character(self, reader: ByteReader, parts: List[str]) -> None:
        parts.append(decode_storage(reader.read(2)))


class MBMEncoder:
    """MBM 文件编码器"""

    def __init__(self, codec: MBMCodec):
        self.codec = codec

    def encode(self, mbm: 'MBM') -> bytes:
        # 先编码所有条目，任何错误都在写出之前抛出
        encoded = [None if entry is None else self.encode_entry(entry) for entry in mbm]
        descriptors = self._build_descriptors(encoded, mbm.index_continuity_on_null)

        body = bytearray()
        for descriptor in descriptors:
            body += struct.pack(self.codec.DESCRIPTOR_FORMAT, *descriptor)
        for raw in encoded:
            if raw:
                body += raw

        file_size = self.codec.HEADER_SIZE + len(body)
        entry_count = mbm.declared_count if mbm.declared_count is not None else len(encoded)
        header = MBMHeader(
            zero=0,
            magic=self.codec.MAGIC,
            version=self.codec.VERSION,
            file_size=file_size + mbm.size_adjust,
            entry_count=entry_count,
            table_offset=self.codec.HEADER_SIZE,
            reserved1=0,
            reserved2=0,
        )
        try:
            out = struct.pack(self.codec.HEADER_FORMAT, *header) + bytes(body)
        except struct.error as e:
            raise FormatError(f"MBM 文件头字段超出范围: {header!r}") from e

        logger.debug("编码 MBM: %d 个条目, %d 字节", len(encoded), len(out))
        return out

    def _build_descriptors(self, encoded: List[Optional[bytes]], continuity: bool) -> List[Descriptor]:
        """根据当前条目长度重新计算条目表"""
        offset = self.codec.HEADER_SIZE + len(encoded) * self.codec.DESCRIPTOR_SIZE
        present = 0
        descriptors = []
        for position, raw in enumerate(encoded):
            if raw is None:
                index = position if continuity else 0
                descriptors.append(Descriptor(index, 0, 0))
                continue
            index = position if continuity else present
            descriptors.append(Descriptor(index, len(raw), offset))
            offset += len(raw)
            present += 1
        return descriptors

    def encode_entry(self, text: str) -> bytes:
        """
        编码单个条目：控制码标记还原为字节，其余文本展开为全角后编码。

        与解码顺序一致地跟踪标记的位置：控制码之后的 operand_units 个标记是参数，
        [Voice] 之后的文本是语音路径，路径之后的一个标记是路径结尾的 [00 00]。
        """
        out = bytearray()
        operands = 0
        voice_path = False
        for kind, value in split_tokens(text):
            if kind == 'text':
                if voice_path:
                    out += self._encode_voice_path(value)
                else:
                    out += self._encode_text(value)
                    operands = 0
                continue

            code = resolve_token(value)
            out += code
            if voice_path:
                voice_path = False
            elif operands:
                operands -= 1
            else:
                opcode = (code[0] << 8) | code[1]
                if opcode == VOICE_OPCODE:
                    voice_path = True
                else:
                    spec = CONTROL_CODES.get(opcode)
                    operands = spec.operand_units if spec is not None else 0
        out += self.codec.TERMINATOR
        return bytes(out)

    @staticmethod
    def _encode_voice_path(path: str) -> bytes:
        try:
            raw = path.encode('latin-1')
        except UnicodeEncodeError as e:
            raise EncodingError(f"语音路径只能包含单字节字符: {path!r}") from e
        if 0 in raw:
            raise EncodingError(f"语音路径中不能包含 0x00: {path!r}")
        return raw

    @staticmethod
    def _encode_text(text: str) -> bytes:
        out = bytearray()
        for ch in text:
            raw = encode_storage(ch)
            # 单字节字符会被当成控制码读回
            if len(raw) != 2:
                raise EncodingError(f"字符 {ch!r} 没有双字节形式，无法写入 MBM")
            # 首字节落在控制码范围内的双字节字符同样无法读回
            if is_control_lead(raw[0]):
                raise EncodingError(f"字符 {ch!r} 的首字节 0x{raw[0]:02X} 与控制码冲突，无法写入 MBM")
            out += raw
        return bytes(out)


class MBM(StringCollection):
    """
    MBM 文本档案。条目为 str，空条目为 None。

    index_continuity_on_null 在解码时根据文件内容得出，决定写回时条目表索引的计数方式:
      False  非空条目按非空条目的序号编号，空条目写 0（直接创建的 MBM 默认如此）
      True   所有条目（包括空条目）按位置连续编号
    """

    codec = MBMCodec()

    def __init__(self, entries: Optional[Iterable[Optional[str]]] = None,
                 index_continuity_on_null: bool = False):
        super().__init__(entries)
        self.index_continuity_on_null = index_continuity_on_null
        # 解码得到的文件头条目数，写回时原样保留；直接创建时为 None，写回 len(self)
        self.declared_count: Optional[int] = None
        # 文件头中的文件大小与实际大小之差
        self.size_adjust = 0

    def _check_entry(self, value):
        if value is None:
            return None
        return super()._check_entry(value)

    def __eq__(self, other) -> bool:
        result = super().__eq__(other)
        if result is NotImplemented or not result:
            return result
        return self.index_continuity_on_null == other.index_continuity_on_null

    def __repr__(self) -> str:
        return (f"MBM({self._entries!r}, "
                f"index_continuity_on_null={self.index_continuity_on_null!r})")

    @classmethod
    def from_bytes(cls, data: bytes) -> 'MBM':
        return MBMDecoder(cls.codec).decode(data)

    @classmethod
    def open(cls, file_path: Union[str, Path]) -> 'MBM':
        return cls.from_bytes(read_file(file_path))

    def to_bytes(self) -> bytes:
        return MBMEncoder(self.codec).encode(self)

    def write_to_file(self, file_path: Union[str, Path]) -> None:
        data = self.to_bytes()
        write_file_atomic(file_path, data)
