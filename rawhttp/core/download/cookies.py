# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2020-05-03 10:12'

import time
from collections import OrderedDict
from http.cookiejar import http2time
from typing import Dict, Optional
from rawhttp.utils.log import get_logger

logger = get_logger()

COOKIE_ATTRIBUTES = ('domain', 'expires', 'path', 'secure', 'comment', 'version', 'max-age')


class Cookie:
    __slots__ = ('name', 'value', 'domain', 'path', 'expires', 'secure', 'comment', 'version')

    def __init__(self, name: str, value: str = '', domain: str = None, path: str = None,
                 expires: float = None, secure: bool = False, comment: str = None, version: str = None):
        self.name = name
        self.value = value
        self.domain = domain
        self.path = path
        # 绝对时间戳，None 表示会话 cookie
        self.expires = expires
        self.secure = secure
        self.comment = comment
        self.version = version

    @classmethod
    def from_header(cls, line: str) -> Optional['Cookie']:
        cookie = None
        attributes = {}
        for part in line.split(';'):
            key, sep, value = part.partition('=')
            key = key.strip()
            value = value.strip()
            if not key:
                continue
            # 第一对 name=value 是 cookie 本身，之后的才是属性
            if cookie is None:
                if not sep:
                    return None
                cookie = cls(key, value)
                continue
            if key.lower() in COOKIE_ATTRIBUTES:
                attributes[key.lower()] = value
        if cookie is None:
            return None

        if 'max-age' in attributes:
            try:
                cookie.expires = time.time() + int(attributes['max-age'])
            except ValueError:
                cookie.expires = 0
        elif 'expires' in attributes:
            # 无法解析的过期时间当作已经过期
            cookie.expires = http2time(attributes['expires']) or 0
        if 'secure' in attributes:
            cookie.secure = True
        cookie.domain = attributes.get('domain') or None
        cookie.path = attributes.get('path') or None
        cookie.comment = attributes.get('comment')
        cookie.version = attributes.get('version')
        return cookie

    @classmethod
    def from_value(cls, name: str, value) -> 'Cookie':
        if isinstance(value, Cookie):
            return value
        if isinstance(value, dict):
            attributes = dict(value)
            attributes.setdefault('name', name)
            return cls(**attributes)
        return cls(name, str(value))

    def is_expired(self, now: float = None) -> bool:
        if self.expires is None:
            return False
        return self.expires < (now if now is not None else time.time())

    def match_domain(self, host: str) -> bool:
        if not self.domain:
            return True
        return host.lower().endswith(self.domain.lstrip('.').lower())

    def match_path(self, full_path: str) -> bool:
        if not self.path:
            return True
        return self.path in full_path

    def output(self) -> str:
        return f'{self.name}={self.value}'

    def __eq__(self, other):
        if not isinstance(other, Cookie):
            return NotImplemented
        return all(getattr(self, slot) == getattr(other, slot) for slot in self.__slots__)

    def __repr__(self):
        return f'<Cookie {self.name}={self.value} domain={self.domain!r} path={self.path!r}>'


class CookiesJar:
    """
    Cookies keyed by name.  Storing a cookie whose name already exists
    replaces the previous one, whatever its domain or path.
    """
    __slots__ = ('_cookies',)

    def __init__(self, cookies: Dict = None):
        self._cookies = OrderedDict()
        if cookies:
            self.add_cookies(cookies)

    def add_cookie(self, cookie: Cookie):
        self._cookies[cookie.name] = cookie

    def add_cookies(self, cookies: Dict):
        for name, cookie in cookies.items():
            self.add_cookie(Cookie.from_value(name, cookie))

    @staticmethod
    def check_cookie(cookie: Cookie, host: str, full_path: str) -> bool:
        # 已经过期
        if cookie.is_expired():
            return False
        # 域名不匹配
        if not cookie.match_domain(host):
            return False
        # 路径不匹配
        if not cookie.match_path(full_path):
            return False
        return True

    def parse_cookie(self, line: str, host: str, full_path: str) -> Optional[Cookie]:
        cookie = Cookie.from_header(line)
        if cookie is None or not self.check_cookie(cookie, host, full_path):
            logger.debug(f'drop cookie {line!r}')
            return None
        self.add_cookie(cookie)
        return cookie

    def compile_cookies(self, host: str, full_path: str) -> Optional[str]:
        # 存储之后主机或者时间可能已经变化，发送前需要重新校验
        pairs = [cookie.output() for cookie in self._cookies.values()
                 if self.check_cookie(cookie, host, full_path)]
        if not pairs:
            return None
        return '; '.join(pairs)

    def get(self, name: str, default=None):
        return self._cookies.get(name, default)

    def dump(self) -> Dict:
        return OrderedDict(self._cookies)

    def clear(self):
        self._cookies.clear()

    def __contains__(self, name):
        return name in self._cookies

    def __iter__(self):
        return iter(self._cookies.values())

    def __len__(self):
        return len(self._cookies)

    def __repr__(self):
        return f'<CookiesJar {list(self._cookies.values())}>'
