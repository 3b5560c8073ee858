# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2020-05-03 16:20'

from typing import Union
from rawhttp.exceptions import UnknownOption
from rawhttp.settings import Settings


def _bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _int(value) -> int:
    return int(value or 0)


def _float(value) -> float:
    return float(value or 0)


def _str(value) -> str:
    return '' if value is None else str(value)


def _data(value) -> bytes:
    if not value:
        return b''
    if isinstance(value, str):
        return value.encode('utf-8')
    return bytes(value)


def _optional_str(value):
    return None if value is None else str(value)


# 可以设置的配置项名称 -> (RequestConfig 字段, 字典中的键, 类型转换)
OPTIONS = {
    'data': ('data', None, _data),
    'datamime': ('data_mime', None, _str),
    'version': ('http_version', None, _str),
    'rangestart': ('range_start', None, _int),
    'rangeend': ('range_end', None, _int),
    'method': ('method', None, _str),
    'useragent': ('user_agent', None, _str),
    'acceptmime': ('accept', None, _str),
    'acceptgzip': ('accept_encoding', 'gzip', lambda value: value),
    'acceptdeflate': ('accept_encoding', 'deflate', lambda value: value),
    'usetransferencoding': ('use_transfer_encoding', None, _str),
    'usecontentencoding': ('use_content_encoding', None, _str),
    'proxyhost': ('proxy_host', None, _str),
    'proxyport': ('proxy_port', None, _int),
    'proxyuser': ('proxy_user', None, _str),
    'proxypass': ('proxy_pass', None, _str),
    'username': ('username', None, _optional_str),
    'password': ('password', None, _optional_str),
    'redirect': ('follow_redirects', None, _bool),
    'maxredirects': ('max_redirects', None, _int),
    'timeout': ('timeout', None, _float),
    'verifyssl': ('verify_ssl', None, _bool),
}


class RequestConfig:
    __slots__ = ('data', 'data_mime', 'http_version', 'range_start', 'range_end', 'method', 'user_agent',
                 'accept', 'accept_encoding', 'use_transfer_encoding', 'use_content_encoding',
                 'proxy_host', 'proxy_port', 'proxy_user', 'proxy_pass', 'username', 'password',
                 'follow_redirects', 'max_redirects', 'timeout', 'verify_ssl', 'print_message')

    def __init__(self, data: bytes = b'', data_mime: str = 'application/octet-stream', http_version: str = '1.1',
                 range_start: int = 0, range_end: int = 0, method: str = 'GET', user_agent: str = '',
                 accept: str = '*/*', accept_encoding: dict = None, use_transfer_encoding: str = '',
                 use_content_encoding: str = '', proxy_host: str = '', proxy_port: int = 8080, proxy_user: str = '',
                 proxy_pass: str = '', username: str = None, password: str = None, follow_redirects: bool = True,
                 max_redirects: int = 10, timeout: Union[int, float] = 5, verify_ssl: bool = True,
                 print_message: bool = False):
        self.data = data
        self.data_mime = data_mime
        self.http_version = http_version
        # 0 表示不设置
        self.range_start = range_start
        self.range_end = range_end
        self.method = method
        self.user_agent = user_agent
        self.accept = accept
        self.accept_encoding = dict(accept_encoding) if accept_encoding is not None else {
            'chunked': 1, 'identity': 0, 'gzip': 1, 'deflate': 1}
        self.use_transfer_encoding = use_transfer_encoding
        self.use_content_encoding = use_content_encoding
        self.proxy_host = proxy_host
        self.proxy_port = proxy_port
        self.proxy_user = proxy_user
        self.proxy_pass = proxy_pass
        self.username = username
        self.password = password
        self.follow_redirects = follow_redirects
        # 0 表示不限制跳转次数
        self.max_redirects = max_redirects
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.print_message = print_message

    @property
    def use_proxy(self) -> bool:
        return bool(self.proxy_host)

    @property
    def has_range(self) -> bool:
        return self.range_start > 0 or self.range_end > 0

    def set_option(self, name: str, value):
        try:
            field, key, convert = OPTIONS[name.lower()]
        except (KeyError, AttributeError):
            raise UnknownOption(f'Invalid argument "{name}"')
        if key is None:
            setattr(self, field, convert(value))
        else:
            getattr(self, field)[key] = convert(value)

    def update(self, **options):
        for name, value in options.items():
            self.set_option(name, value)

    @classmethod
    def from_settings(cls, settings: Settings) -> 'RequestConfig':
        return cls(
            data_mime=settings.get("DATA_MIME"),
            http_version=settings.get("HTTP_VERSION"),
            method=settings.get("METHOD"),
            user_agent=settings.get("USER_AGENT"),
            accept=settings.get("ACCEPT"),
            accept_encoding=settings.getdict("ACCEPT_ENCODING"),
            use_transfer_encoding=settings.get("USE_TRANSFER_ENCODING", ""),
            use_content_encoding=settings.get("USE_CONTENT_ENCODING", ""),
            proxy_host=settings.get("PROXY_HOST", ""),
            proxy_port=settings.getint("PROXY_PORT"),
            proxy_user=settings.get("PROXY_USER", ""),
            proxy_pass=settings.get("PROXY_PASS", ""),
            username=settings.get("USERNAME"),
            password=settings.get("PASSWORD"),
            follow_redirects=settings.getbool("FOLLOW_REDIRECTS"),
            max_redirects=settings.getint("MAX_REDIRECTS"),
            timeout=settings.getfloat("TIMEOUT"),
            verify_ssl=settings.getbool("VERIFY_SSL"),
            print_message=settings.getbool("PRINT_MESSAGE"),
        )
