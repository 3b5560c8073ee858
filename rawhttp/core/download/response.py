# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019-07-21 13:49'

import json
import re
from typing import List, Tuple
from .auth import AuthEngine
from .cookies import CookiesJar
from .url import URL
from .xfer import decode_body
from rawhttp.const import status_text_for, SUCCESS_CODES, UNAUTHORIZED, HEADER_CODING, DEFAULT_CODING
from rawhttp.exceptions import HTTPStatusError
from rawhttp.utils.datatypes import Headers
from rawhttp.utils.log import get_logger

logger = get_logger()

# 新头部行的开头，不匹配的行是上一个头部的续行
HEADER_FIELD_PATTERN = re.compile(r'^[a-zA-Z0-9\-]+:')

LINE_SPLIT_PATTERN = re.compile(r'\r\n|\n|\r')


def split_status_line(line: str) -> Tuple[str, int, str]:
    parts = line.strip().split(' ', 2)
    version = parts[0] if parts else ''
    try:
        code = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        code = 0
    text = parts[2].strip() if len(parts) > 2 else ''
    return version, code, text


def unfold_headers(lines: List[str]) -> List[Tuple[str, str]]:
    """
    头部可以折成多行，续行用一个空格拼接到上一个头部的值后面
    """
    headers = []
    name, value = None, ''
    for raw_line in lines:
        line = raw_line.strip()
        if not line:
            break
        if not raw_line[0].isspace() and HEADER_FIELD_PATTERN.match(line):
            if name:
                headers.append((name, value.strip()))
            name, _, value = line.partition(':')
        elif name:
            value += ' ' + line
    if name:
        headers.append((name, value.strip()))
    return headers


class Response:
    __slots__ = ('version', 'status_code', 'status_text', 'headers', 'raw_headers', 'content', 'error',
                 'decoded', 'url')

    def __init__(self, url: URL = None):
        self.url = url
        self.version = ''
        self.status_code = 0
        self.status_text = ''
        self.headers = Headers()
        self.raw_headers = b''
        self.content = b''
        self.error = ''
        # body 是否经过了解码
        self.decoded = False

    @property
    def encoding(self):
        content_type = self.headers.get('content-type', '')
        match = re.search(r'charset=([\w\-]+)', content_type, re.I)
        return match.group(1) if match else DEFAULT_CODING

    def text(self, encoding: str = None) -> str:
        return self.content.decode(encoding or self.encoding, errors='replace')

    def json(self, *args, loads=None, **kwargs):
        if not loads:
            loads = json.loads
        return loads(self.text(), *args, **kwargs)

    def has_error(self) -> bool:
        return bool(self.error)

    def is_redirect(self) -> bool:
        return self.headers.get('location') is not None

    def raise_for_status(self):
        if self.error:
            raise HTTPStatusError(self.status_code, self.error)

    def process_header_line(self, name: str, value: str, jar: CookiesJar, method: str):
        if name.lower() == 'set-cookie':
            if jar is not None and self.url is not None:
                jar.parse_cookie(value, self.url.host, self.url.full_path(method))
            return
        self.headers[name] = value.strip()

    def decode_content(self):
        # 先解开 Transfer-Encoding，再解开 Content-Encoding
        for name in ('Transfer-Encoding', 'Content-Encoding'):
            value = self.headers.get(name)
            if value:
                result = decode_body(self.content, value)
                self.content = result.data
                self.decoded = self.decoded or result.decoded

    def parse(self, head: bytes, body: bytes, jar: CookiesJar = None, auth: AuthEngine = None,
              method: str = 'GET') -> 'Response':
        self.raw_headers = head
        self.content = body
        lines = LINE_SPLIT_PATTERN.split(head.decode(HEADER_CODING))
        self.version, self.status_code, text = split_status_line(lines[0] if lines else '')
        self.status_text = text or status_text_for(self.status_code)
        for name, value in unfold_headers(lines[1:]):
            self.process_header_line(name, value, jar, method)
        self.decode_content()

        challenge = self.headers.get('WWW-Authenticate')
        if self.status_code == UNAUTHORIZED and challenge and auth is not None:
            auth.parse_challenge(challenge)

        if self.status_code not in SUCCESS_CODES:
            self.error = text or status_text_for(self.status_code) or f'HTTP {self.status_code}'
        return self

    def __repr__(self):
        return f'<Response [{self.status_code}]>'
