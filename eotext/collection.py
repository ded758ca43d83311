"""文本条目集合的公共部分"""

from typing import Iterable, Iterator, List, Optional


class StringCollection:
    """
    有序的文本条目集合，只能按索引读取和替换。

    条目顺序决定写回时的字节偏移，因此集合不提供插入、删除操作，条目数量在创建后固定。
    """

    def __init__(self, entries: Optional[Iterable[Optional[str]]] = None):
        self._entries: List[Optional[str]] = []
        if entries is not None:
            for entry in entries:
                self._entries.append(self._check_entry(entry))

    def _check_entry(self, value):
        if not isinstance(value, str):
            raise TypeError(f"{type(self).__name__} 条目必须是 str，而不是 {type(value).__name__}")
        return value

    def count(self) -> int:
        return len(self._entries)

    def get(self, index: int) -> Optional[str]:
        return self._entries[index]

    def set(self, index: int, value: Optional[str]) -> None:
        self._entries[index] = self._check_entry(value)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> Optional[str]:
        if not isinstance(index, int):
            raise TypeError(f"索引必须是整数，而不是 {type(index).__name__}")
        return self._entries[index]

    def __setitem__(self, index: int, value: Optional[str]) -> None:
        if not isinstance(index, int):
            raise TypeError(f"索引必须是整数，而不是 {type(index).__name__}")
        self._entries[index] = self._check_entry(value)

    def __iter__(self) -> Iterator[Optional[str]]:
        return iter(self._entries)

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._entries!r})"
