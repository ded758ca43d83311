"""
TBL 文本表编解码器的测试

测试数据由全角字符串手工拼出，期望的字节不依赖被测的编码器。
"""
import os
import struct
import tempfile
import unittest

from eotext import BoundsError, EncodingError, FormatError, Table, decode_table, encode_table

SKILL_NAMES = [
    "Ｌｉｎｋ　Ｆｌａｍｅ",
    "ソードマスタリー",
    "Ｃｈａｓｅ　Ｆｉｒｅ",
    "ハヤブサ駆け",
    "Ｓｔｕｎ　Ｓｌａｓｈ",
    "ＨＰアップ",
    "ＴＰ－１０",
]


def build_tbl(storage_strings, pointer_width):
    """用已是存储形式（全角）的字符串拼出 .tbl，指针按字符数 * 2 + 1 累加"""
    fmt = "<H" if pointer_width == 2 else "<I"
    out = struct.pack(fmt, len(storage_strings))
    pointer = 0
    for text in storage_strings:
        pointer += len(text) * 2 + 1
        out += struct.pack(fmt, pointer)
    for text in storage_strings:
        out += text.encode("cp932") + b"\x00"
    return out


def level_names(count):
    return ["Ｌｅｖｅｌ　" + "".join(chr(0xFF10 + int(d)) for d in str(i)) for i in range(count)]


class TestDecode(unittest.TestCase):

    def test_decode_short_pointers(self):
        entries = decode_table(build_tbl(SKILL_NAMES, 2), 2)
        self.assertEqual(entries, [
            "Link Flame",
            "ソードマスタリー",
            "Chase Fire",
            "ハヤブサ駆け",
            "Stun Slash",
            "HPアップ",
            "TP-10",
        ])

    def test_decode_long_pointers(self):
        names = level_names(30)
        entries = decode_table(build_tbl(names, 4), 4)
        self.assertEqual(len(entries), 30)
        self.assertEqual(entries[23], "Level 23")

    def test_count_width_follows_pointer_width(self):
        data = build_tbl(SKILL_NAMES, 4)
        self.assertEqual(struct.unpack_from("<I", data)[0], len(SKILL_NAMES))
        self.assertEqual(len(decode_table(data, 4)), len(SKILL_NAMES))

    def test_empty_strings(self):
        data = struct.pack("<HHH", 2, 1, 2) + b"\x00\x00"
        self.assertEqual(decode_table(data, 2), ["", ""])

    def test_unterminated_entry(self):
        data = build_tbl(SKILL_NAMES, 2)[:-1]
        with self.assertRaises(BoundsError):
            decode_table(data, 2)

    def test_pointer_array_past_end(self):
        with self.assertRaises(BoundsError):
            decode_table(struct.pack("<H", 50) + b"\x01\x00", 2)

    def test_count_mismatch(self):
        data = bytearray(build_tbl(SKILL_NAMES, 2))
        data[0:2] = struct.pack("<H", len(SKILL_NAMES) - 1)
        with self.assertRaises(FormatError):
            decode_table(bytes(data), 2)

    def test_invalid_pointer_width(self):
        with self.assertRaises(ValueError):
            decode_table(b"\x00\x00", 3)


class TestEncode(unittest.TestCase):

    def test_reencode_is_byte_identical(self):
        for width in (2, 4):
            original = build_tbl(SKILL_NAMES, width)
            self.assertEqual(Table.from_bytes(original, width).to_bytes(width), original)

    def test_round_trip(self):
        table = Table(["Attack", "Defend 50%", "回復", ""])
        for width in (2, 4):
            self.assertEqual(Table.from_bytes(table.to_bytes(width), width), table)

    def test_modify_short_pointer_table(self):
        table = Table.from_bytes(build_tbl(SKILL_NAMES, 2), 2)
        table[4] = "MODIFIED NAME"
        expected_names = list(SKILL_NAMES)
        expected_names[4] = "ＭＯＤＩＦＩＥＤ　ＮＡＭＥ"
        self.assertEqual(table.to_bytes(2), build_tbl(expected_names, 2))

    def test_modify_long_pointer_table(self):
        names = level_names(30)
        table = Table.from_bytes(build_tbl(names, 4), 4)
        table[23] = "MODIFIED LEVEL UP"
        names[23] = "ＭＯＤＩＦＩＥＤ　ＬＥＶＥＬ　ＵＰ"
        self.assertEqual(table.to_bytes(4), build_tbl(names, 4))

    def test_pointer_counts_characters(self):
        # 半角括号只占一个字节，指针仍按每字符两字节累加
        data = encode_table(["(A)", "BC"], 2)
        self.assertEqual(struct.unpack_from("<HH", data, 2), (7, 12))
        self.assertEqual(data[6:], b"(\x82\x60)\x00\x82\x61\x82\x62\x00")
        self.assertEqual(decode_table(data, 2), ["(A)", "BC"])

    def test_empty_table(self):
        self.assertEqual(encode_table([], 2), b"\x00\x00")
        self.assertEqual(encode_table([], 4), b"\x00\x00\x00\x00")

    def test_pointer_overflow(self):
        with self.assertRaises(FormatError):
            encode_table(["A" * 40000], 2)

    def test_unencodable(self):
        with self.assertRaises(EncodingError):
            encode_table(["\U0001F600"], 2)


class TestTableCollection(unittest.TestCase):

    def test_indexing(self):
        table = Table(["a", "b"])
        self.assertEqual(len(table), 2)
        self.assertEqual(table.count(), 2)
        self.assertEqual(table.get(1), "b")
        table.set(1, "c")
        self.assertEqual(table[1], "c")
        self.assertEqual(list(table), ["a", "c"])

    def test_rejects_none(self):
        table = Table(["a"])
        with self.assertRaises(TypeError):
            table[0] = None
        with self.assertRaises(TypeError):
            Table([None])

    def test_index_out_of_range(self):
        with self.assertRaises(IndexError):
            Table(["a"])[1] = "b"


class TestTableFiles(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def test_open_and_write(self):
        source = os.path.join(self.tmpdir.name, "playerskillnametable.tbl")
        target = os.path.join(self.tmpdir.name, "out.tbl")
        with open(source, "wb") as f:
            f.write(build_tbl(SKILL_NAMES, 2))

        table = Table.open(source, 2)
        table.write_to_file(target, 2)
        with open(source, "rb") as a, open(target, "rb") as b:
            self.assertEqual(a.read(), b.read())

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            Table.open(os.path.join(self.tmpdir.name, "missing.tbl"))

    def test_failed_write_leaves_no_file(self):
        target = os.path.join(self.tmpdir.name, "out.tbl")
        with self.assertRaises(EncodingError):
            Table(["\U0001F600"]).write_to_file(target)
        self.assertEqual(os.listdir(self.tmpdir.name), [])


if __name__ == "__main__":
    unittest.main()
