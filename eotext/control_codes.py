"""
控制码表与方括号标记

MBM 文本中夹带 2 字节的控制码（大端顺序存放），部分控制码后面还跟着若干个 16 位参数。
解码后的文本用方括号标记表示控制码：
  - 有别名的控制码写作 [别名]，例如 [Voice]
  - 没有别名的控制码和所有参数写作 [XX YY]
  - 语音控制码 0xF81B 的参数是以两个 0x00 结尾的 ASCII 路径，写作 [Voice]路径[00 00]
"""

import re
from types import MappingProxyType
from typing import Iterator, NamedTuple, Optional, Tuple

from .errors import UnknownTokenError


class ControlCodeSpec(NamedTuple):
    opcode: int
    operand_units: int  # 参数个数，单位为 16 位
    alias: Optional[str] = None


VOICE_OPCODE = 0xF81B

_SPECS = (
    # 将后续文本设为 NPC 名牌，直到 [00 00]
    ControlCodeSpec(0xF812, 0, 'Telop'),
    # 旧式语音：语音组 ID 与片段 ID
    ControlCodeSpec(0xF813, 4),
    # 新式语音：参数为 ASCII 路径，需要特殊处理
    ControlCodeSpec(VOICE_OPCODE, 0, 'Voice'),
    # 技能小标题数值
    ControlCodeSpec(0xF85A, 1, 'SkillSubheader'),
    # 已知 NPC 名牌 ID
    ControlCodeSpec(0xF8F9, 1, 'NPCTelop'),
)

CONTROL_CODES = MappingProxyType({spec.opcode: spec for spec in _SPECS})
ALIASES = MappingProxyType({spec.alias: spec.opcode for spec in _SPECS if spec.alias})

TOKEN_PATTERN = re.compile(r'\[([^\[\]]*)\]')
HEX_TOKEN_PATTERN = re.compile(r'([0-9A-Fa-f]{2}) ([0-9A-Fa-f]{2})')


def is_control_lead(byte: int) -> bool:
    """判断字节是否为控制码的首字节"""
    return byte < 0x81 or 0xA0 <= byte <= 0xE0 or 0xF0 <= byte <= 0xF9


def render_word(upper: int, lower: int) -> str:
    return f'[{upper:02X} {lower:02X}]'


def render_opcode(opcode: int) -> str:
    """有别名时渲染为 [别名]，否则渲染为 [XX YY]"""
    spec = CONTROL_CODES.get(opcode)
    if spec is not None and spec.alias:
        return f'[{spec.alias}]'
    return render_word(opcode >> 8, opcode & 0xFF)


def resolve_token(body: str) -> bytes:
    """将方括号内的内容还原为 2 字节：先查别名，再按 XX YY 解析"""
    opcode = ALIASES.get(body)
    if opcode is not None:
        return bytes((opcode >> 8, opcode & 0xFF))

    match = HEX_TOKEN_PATTERN.fullmatch(body)
    if match is None:
        raise UnknownTokenError(body)
    return bytes((int(match.group(1), 16), int(match.group(2), 16)))


def split_tokens(text: str) -> Iterator[Tuple[str, str]]:
    """
    将解码文本拆分为 ('text', 文本) 与 ('token', 标记内容) 片段。
    不成对的方括号按普通文本处理。
    """
    pos = 0
    for match in TOKEN_PATTERN.finditer(text):
        if match.start() > pos:
            yield 'text', text[pos:match.start()]
        yield 'token', match.group(1)
        pos = match.end()
    if pos < len(text):
        yield 'text', text[pos:]
