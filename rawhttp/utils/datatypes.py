# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019/8/16 19:50'

from collections import OrderedDict
from collections.abc import Mapping, MutableMapping


class Headers(MutableMapping):
    """
    大小写不敏感、保持插入顺序的头部字典。
    只存一份数据，同时保留头部第一次出现时的原始写法。
    """
    __slots__ = ('_store',)

    def __init__(self, seq=None):
        # 小写的键 -> (原始键, 值)
        self._store = OrderedDict()
        if seq:
            self.update(seq)

    @staticmethod
    def normal_key(key: str) -> str:
        return key.lower()

    def __getitem__(self, key):
        return self._store[self.normal_key(key)][1]

    def __setitem__(self, key, value):
        normal_key = self.normal_key(key)
        if normal_key in self._store:
            # 已存在的头部保留原来的写法和位置
            key = self._store[normal_key][0]
        self._store[normal_key] = (key, value)

    def __delitem__(self, key):
        del self._store[self.normal_key(key)]

    def __contains__(self, key):
        return isinstance(key, str) and self.normal_key(key) in self._store

    def __iter__(self):
        return (original for original, _ in self._store.values())

    def __len__(self):
        return len(self._store)

    def get(self, key, def_val=None):
        try:
            return self[key]
        except KeyError:
            return def_val

    def lower_items(self):
        return ((normal_key, pair[1]) for normal_key, pair in self._store.items())

    def dump(self) -> dict:
        return dict(self.items())

    def __eq__(self, other):
        if isinstance(other, Mapping):
            other = Headers(other)
        else:
            return NotImplemented
        return dict(self.lower_items()) == dict(other.lower_items())

    def __repr__(self):
        return f'<Headers {self.dump()}>'
