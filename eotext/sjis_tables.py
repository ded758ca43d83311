"""
全角/半角折叠表

游戏文件以 Shift-JIS（cp932）双字节存储文本，数字、拉丁字母和常用标点都以全角形式保存。
内存中的文本统一使用半角（规范）形式，读取时折叠为半角，写回时展开为全角。

两个方向并非严格互逆（例如 '。' 与 '．' 都折叠为 '.'，而 '.' 只展开为 '．'），
现有的游戏文件依赖这组历史映射，不要"修正"它。
"""

from types import MappingProxyType

from .errors import EncodingError, FormatError

# 游戏文本使用的编码，0x8160/0x817C 在 cp932 中映射为全角 '～'/'－'
GAME_ENCODING = 'cp932'


# 全角（存储形式） -> 半角（规范形式）
FROM_FULLWIDTH = MappingProxyType({
    '０': '0', '１': '1', '２': '2', '３': '3', '４': '4',
    '５': '5', '６': '6', '７': '7', '８': '8', '９': '9',
    'Ａ': 'A', 'Ｂ': 'B', 'Ｃ': 'C', 'Ｄ': 'D', 'Ｅ': 'E', 'Ｆ': 'F',
    'Ｇ': 'G', 'Ｈ': 'H', 'Ｉ': 'I', 'Ｊ': 'J', 'Ｋ': 'K', 'Ｌ': 'L',
    'Ｍ': 'M', 'Ｎ': 'N', 'Ｏ': 'O', 'Ｐ': 'P', 'Ｑ': 'Q', 'Ｒ': 'R',
    'Ｓ': 'S', 'Ｔ': 'T', 'Ｕ': 'U', 'Ｖ': 'V', 'Ｗ': 'W', 'Ｘ': 'X',
    'Ｙ': 'Y', 'Ｚ': 'Z',
    'ａ': 'a', 'ｂ': 'b', 'ｃ': 'c', 'ｄ': 'd', 'ｅ': 'e', 'ｆ': 'f',
    'ｇ': 'g', 'ｈ': 'h', 'ｉ': 'i', 'ｊ': 'j', 'ｋ': 'k', 'ｌ': 'l',
    'ｍ': 'm', 'ｎ': 'n', 'ｏ': 'o', 'ｐ': 'p', 'ｑ': 'q', 'ｒ': 'r',
    'ｓ': 's', 'ｔ': 't', 'ｕ': 'u', 'ｖ': 'v', 'ｗ': 'w', 'ｘ': 'x',
    'ｙ': 'y', 'ｚ': 'z',
    'α': 'α',
    'β': 'ß',
    '：': ':',
    '；': ';',
    '？': '?',
    '！': '!',
    '。': '.',
    '．': '.',
    '～': '~',
    '‘': "'",
    '’': "'",
    '＋': '+',
    '－': '-',
    '±': '±',
    '＊': '*',
    '＆': '&',
    '％': '%',
    '　': ' ',
    '／': '/',
    '，': ',',
})

# 半角（规范形式） -> 全角（存储形式）
TO_FULLWIDTH = MappingProxyType({
    '0': '０', '1': '１', '2': '２', '3': '３', '4': '４',
    '5': '５', '6': '６', '7': '７', '8': '８', '9': '９',
    'A': 'Ａ', 'B': 'Ｂ', 'C': 'Ｃ', 'D': 'Ｄ', 'E': 'Ｅ', 'F': 'Ｆ',
    'G': 'Ｇ', 'H': 'Ｈ', 'I': 'Ｉ', 'J': 'Ｊ', 'K': 'Ｋ', 'L': 'Ｌ',
    'M': 'Ｍ', 'N': 'Ｎ', 'O': 'Ｏ', 'P': 'Ｐ', 'Q': 'Ｑ', 'R': 'Ｒ',
    'S': 'Ｓ', 'T': 'Ｔ', 'U': 'Ｕ', 'V': 'Ｖ', 'W': 'Ｗ', 'X': 'Ｘ',
    'Y': 'Ｙ', 'Z': 'Ｚ',
    'a': 'ａ', 'b': 'ｂ', 'c': 'ｃ', 'd': 'ｄ', 'e': 'ｅ', 'f': 'ｆ',
    'g': 'ｇ', 'h': 'ｈ', 'i': 'ｉ', 'j': 'ｊ', 'k': 'ｋ', 'l': 'ｌ',
    'm': 'ｍ', 'n': 'ｎ', 'o': 'ｏ', 'p': 'ｐ', 'q': 'ｑ', 'r': 'ｒ',
    's': 'ｓ', 't': 'ｔ', 'u': 'ｕ', 'v': 'ｖ', 'w': 'ｗ', 'x': 'ｘ',
    'y': 'ｙ', 'z': 'ｚ',
    'α': 'α',
    'ß': 'β',
    ':': '：',
    ';': '；',
    '?': '？',
    '!': '！',
    '.': '．',
    '~': '～',
    "'": '’',
    '+': '＋',
    '-': '－',
    '±': '±',
    '*': '＊',
    '&': '＆',
    '%': '％',
    ' ': '　',
    '/': '／',
    ',': '，',
})


def to_canonical(ch: str) -> str:
    """全角字符折叠为半角，表中没有的字符原样返回"""
    return FROM_FULLWIDTH.get(ch, ch)


def to_storage(ch: str) -> str:
    """半角字符展开为全角，表中没有的字符原样返回"""
    return TO_FULLWIDTH.get(ch, ch)


def fold_text(text: str) -> str:
    return ''.join(to_canonical(ch) for ch in text)


def unfold_text(text: str) -> str:
    return ''.join(to_storage(ch) for ch in text)


def decode_storage(raw: bytes) -> str:
    """解码一段 cp932 字节并折叠为规范形式"""
    try:
        text = raw.decode(GAME_ENCODING)
    except UnicodeDecodeError as e:
        raise FormatError(f"无效的 Shift-JIS 字符数据: {raw[e.start:e.end].hex(' ')}") from e
    return fold_text(text)


def encode_storage(text: str) -> bytes:
    """将规范形式的文本展开为全角并编码为 cp932 字节"""
    try:
        return unfold_text(text).encode(GAME_ENCODING)
    except UnicodeEncodeError as e:
        raise EncodingError(f"字符无法编码为 Shift-JIS: {e.object[e.start:e.end]!r}") from e
