# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019-08-25 22:09'

import ipaddress
from urllib.parse import unquote, urljoin
import httptools
from w3lib.url import safe_url_string
from rawhttp.const import DEFAULT_PORTS, DEFAULT_CODING
from rawhttp.exceptions import MissingSchema, ProtocolError

URL_ENCODING = 'utf-8'


def _text(value) -> str:
    if value is None:
        return ''
    return value.decode(URL_ENCODING)


class URL:
    __slots__ = ('schema', 'host', 'port', 'path', 'query', 'fragment', 'user', 'password', 'has_port')

    def __init__(self, schema: bytes, host: bytes, port, path: bytes,
                 query: bytes, fragment: bytes, userinfo: bytes):
        self.schema = _text(schema).lower()
        self.host = _text(host)
        self.has_port = port is not None
        self.port = port if port is not None else DEFAULT_PORTS.get(self.schema, 80)
        self.path = _text(path)
        self.query = _text(query)
        self.fragment = _text(fragment)
        self.user = None
        self.password = None
        userinfo = _text(userinfo)
        if userinfo:
            user, _, password = userinfo.partition(':')
            self.user = unquote(user)
            self.password = unquote(password)

    def __repr__(self):
        return ('<URL schema: {!r}, host: {!r}, port: {!r}, path: {!r}, '
                'query: {!r}, fragment: {!r}, user: {!r}>'
                .format(self.schema, self.host, self.port, self.path, self.query, self.fragment, self.user))

    @property
    def add_port(self) -> bool:
        # 端口和协议默认端口不一致时，需要在 Host 中带上端口
        return self.port != DEFAULT_PORTS.get(self.schema)

    @property
    def is_ssl(self) -> bool:
        return self.schema == "https"

    @property
    def is_ipv6(self) -> bool:
        try:
            return ipaddress.ip_address(self.host).version == 6
        except ValueError:
            return False

    def full_path(self, method: str = 'GET') -> str:
        # 没有 path 时，OPTIONS 请求的是整个服务器，其他请求使用根路径
        if self.path:
            full_path = self.path
        else:
            full_path = '*' if method.upper() == 'OPTIONS' else '/'
        if self.query:
            # 去掉 html 转义的 &
            full_path += '?' + self.query.replace('&amp;', '&')
        return full_path

    @property
    def host_header(self) -> str:
        host = f'[{self.host}]' if self.is_ipv6 else self.host
        if self.add_port:
            host += f':{self.port}'
        return host

    @property
    def netloc(self) -> str:
        netloc = self.host_header
        if self.user is not None:
            userinfo = self.user
            if self.password:
                userinfo += ':' + self.password
            netloc = userinfo + '@' + netloc
        return netloc

    @property
    def raw(self) -> str:
        _raw = f'{self.schema}://{self.netloc}{self.path or "/"}'
        if self.query:
            _raw += '?' + self.query
        if self.fragment:
            _raw += '#' + self.fragment
        return _raw

    def absolute(self, method: str = 'GET') -> str:
        # 通过代理发送明文请求时使用的绝对地址，不带用户信息和片段
        return f'{self.schema}://{self.host_header}{self.full_path(method)}'


def parse_url(url) -> URL:
    if isinstance(url, bytes):
        url = url.decode(DEFAULT_CODING)
    if not url:
        raise ProtocolError('Url parameter must not be empty.')
    if '://' not in url:
        raise MissingSchema(f'Missing schema in {url}. Perhaps you meant http://{url} ?.')
    # 转义非法字符，同时对域名进行 idna 编码
    safe_url = safe_url_string(url)
    try:
        parse_result = httptools.parse_url(safe_url.encode(URL_ENCODING))
    except httptools.HttpParserInvalidURLError:
        raise ProtocolError(f'Invalid url {url}')
    uri = URL(schema=parse_result.schema,
              host=parse_result.host,
              port=parse_result.port,
              path=parse_result.path,
              query=parse_result.query,
              fragment=parse_result.fragment,
              userinfo=parse_result.userinfo)
    if uri.schema not in DEFAULT_PORTS:
        raise ProtocolError(f'Invalid schema {uri.schema}')
    if not uri.host:
        raise ProtocolError(f'Missing host in {url}')
    return uri


def join_url(uri: URL, location: str) -> URL:
    """
    根据 Location 计算跳转地址：绝对地址直接替换，相对地址基于当前地址合并
    """
    return parse_url(urljoin(uri.raw, location.strip()))
