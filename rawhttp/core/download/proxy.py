# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019/8/26 20:19'

import socket
import ssl
from collections import OrderedDict, namedtuple
from typing import Callable
from .url import URL
from .config import RequestConfig
from .auth import basic_authorization
from .request import render_head
from rawhttp.const import HEADER_CODING
from rawhttp.utils.log import get_logger

logger = get_logger()

# sock 为升级后的 ssl socket，error 不为空表示失败
TunnelResult = namedtuple('TunnelResult', ['sock', 'error'])

# 握手失败后 socket 已被关闭，只能尝试一次：最高版本不限，最低允许到 TLS 1.2
MINIMUM_TLS_VERSION = ssl.TLSVersion.TLSv1_2


class ProxyHandler:

    @classmethod
    def get_proxy_authorization(cls, config: RequestConfig, headers: dict = None):
        headers = headers or {}
        for key, value in headers.items():
            if key.lower() == 'proxy-authorization':
                return value
        if config.proxy_user:
            return basic_authorization(config.proxy_user, config.proxy_pass)
        return None

    @classmethod
    def connect_request(cls, url: URL, config: RequestConfig, proxy_authorization: str = None) -> bytes:
        #   CONNECT www.python.org:443 HTTP/1.1
        #   Host: www.python.org:443
        host = f'[{url.host}]' if url.is_ipv6 else url.host
        authority = f'{host}:{url.port}'
        headers = OrderedDict()
        headers['Host'] = authority
        if config.user_agent:
            headers['User-Agent'] = config.user_agent
        if proxy_authorization:
            headers['Proxy-Authorization'] = proxy_authorization
        return render_head(f'CONNECT {authority} HTTP/1.1', headers)

    @classmethod
    def read_connect_response(cls, sock: socket.socket) -> bytes:
        # 只读取到空行为止，之后的数据属于 tls 握手
        response = b''
        while not response.endswith(b'\r\n\r\n') and not response.endswith(b'\n\n'):
            data = sock.recv(1)
            if not data:
                break
            response += data
        return response

    @classmethod
    def upgrade(cls, sock: socket.socket, server_hostname: str, context_factory: Callable) -> TunnelResult:
        context = context_factory()
        try:
            context.minimum_version = MINIMUM_TLS_VERSION
        except ValueError as error:
            logger.debug(f'keep default minimum tls version: {error}')
        try:
            return TunnelResult(context.wrap_socket(sock, server_hostname=server_hostname), None)
        except (ssl.SSLError, OSError) as error:
            logger.info(f'tls handshake with {server_hostname} failed: {error}')
            return TunnelResult(None, 'Unable to connect to HTTPS server through proxy: '
                                      f'could not negotiate secure connection. {error}')

    @classmethod
    def open_tunnel(cls, sock: socket.socket, url: URL, config: RequestConfig, context_factory: Callable,
                    proxy_authorization: str = None) -> TunnelResult:
        request = cls.connect_request(url, config, proxy_authorization)
        try:
            sock.sendall(request)
            response = cls.read_connect_response(sock)
        except OSError as error:
            return TunnelResult(None, f'Error writing request to proxy server: {error}')
        status_line = response.split(b'\r\n', 1)[0].decode(HEADER_CODING, 'replace')
        parts = status_line.split(' ', 2)
        if len(parts) < 2 or not parts[0].startswith('HTTP/') or parts[1] != '200':
            return TunnelResult(None, f'Unable to connect to HTTPS proxy. Server response: {status_line}')
        logger.info(f'proxy tunnel to {url.host}:{url.port} established')
        return cls.upgrade(sock, url.host, context_factory)
