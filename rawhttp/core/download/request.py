# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019-07-21 13:49'

from collections import OrderedDict
from typing import Dict
from w3lib.http import headers_dict_to_raw
from .config import RequestConfig
from .url import URL
from .xfer import encode_body
from rawhttp.const import CRLF, HEADER_CODING
from rawhttp.exceptions import InvalidHeader


def accept_encoding_value(accept_encoding: Dict) -> str:
    encodings = []
    for name, enabled in accept_encoding.items():
        if name.lower() in ('compress', 'x-compress'):
            # compress 的实现不通用，永远不对外声明
            continue
        if not enabled:
            weight = '0'
        elif enabled is True:
            weight = '1'
        else:
            weight = str(enabled)
        encodings.append(f'{name};q={weight}')
    return ','.join(encodings)


def render_head(start_line: str, headers: Dict) -> bytes:
    """
    起始行加头部，以空行结束。头部只能是 latin-1 字符
    """
    try:
        raw_headers = headers_dict_to_raw(OrderedDict(
            (key.encode(HEADER_CODING), str(value).encode(HEADER_CODING)) for key, value in headers.items()))
        return start_line.encode(HEADER_CODING) + CRLF + raw_headers + CRLF + CRLF
    except UnicodeEncodeError as error:
        raise InvalidHeader(f'Header can not be encoded as {HEADER_CODING}: {error.object!r}')


def encode_request_body(data: bytes, content_encoding: str, transfer_encoding: str):
    """
    先做 Content-Encoding，再做 Transfer-Encoding。
    只有真正改变了数据的那一步才需要加对应的头部
    """
    headers = OrderedDict()
    data, changed = encode_body(data, content_encoding)
    if changed:
        headers['Content-Encoding'] = content_encoding
    data, changed = encode_body(data, transfer_encoding)
    if changed:
        headers['Transfer-Encoding'] = transfer_encoding
    return data, headers


class Request:
    __slots__ = ('method', 'url', 'config', 'headers', 'data', 'cookies', 'authorization',
                 'proxy_authorization')

    def __init__(self, config: RequestConfig, url: URL, headers: Dict = None, cookies: str = None,
                 authorization: str = None, proxy_authorization: str = None):
        self.config = config
        self.method = (config.method or 'GET').upper()
        self.url = url
        self.headers = headers or {}
        self.data = config.data or b''
        self.cookies = cookies
        self.authorization = authorization
        self.proxy_authorization = proxy_authorization

    def is_proxy_req(self) -> bool:
        return self.config.use_proxy

    def is_ssl(self) -> bool:
        return self.url.is_ssl

    @property
    def target(self) -> str:
        # 通过代理发送明文请求时，请求行里要带完整的地址
        if self.is_proxy_req() and not self.is_ssl():
            return self.url.absolute(self.method)
        return self.url.full_path(self.method)

    @property
    def request_line(self) -> str:
        return f'{self.method} {self.target} HTTP/{self.config.http_version}'

    def compile_headers(self, body_headers: Dict, body: bytes) -> OrderedDict:
        config = self.config
        headers = OrderedDict()
        headers['Host'] = self.url.host_header
        headers['User-Agent'] = config.user_agent
        headers['Connection'] = 'close'
        headers['Accept-Encoding'] = accept_encoding_value(config.accept_encoding)
        if config.accept:
            headers['Accept'] = config.accept
        if body:
            if 'Transfer-Encoding' not in body_headers:
                headers['Content-Length'] = str(len(body))
            if config.data_mime:
                headers['Content-Type'] = config.data_mime
            headers.update(body_headers)
        if config.has_range:
            end = str(config.range_end) if config.range_end >= config.range_start else ''
            headers['Range'] = f'bytes={config.range_start}-{end}'
        # 用户设置的头部，同名的覆盖默认值
        for key, value in self.headers.items():
            headers[key] = str(value)
        if self.proxy_authorization and self.is_proxy_req() and not self.is_ssl():
            headers['Proxy-Authorization'] = self.proxy_authorization
        if self.cookies:
            headers['Cookie'] = self.cookies
        if self.authorization:
            headers['Authorization'] = self.authorization
        return headers

    def encode(self) -> bytes:
        # 把请求编码成字节类型
        body, body_headers = b'', {}
        if self.data:
            body, body_headers = encode_request_body(self.data, self.config.use_content_encoding,
                                                     self.config.use_transfer_encoding)
        headers = self.compile_headers(body_headers, body)
        return render_head(self.request_line, headers) + body

    def __repr__(self):
        return f'<Request [{self.method} {self.url.raw}]>'
