# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019-07-20 23:39'

import re
import socket
import ssl
from typing import Tuple
from .config import RequestConfig
from .proxy import ProxyHandler
from .url import URL
from rawhttp.const import HEADER_END, READ_BUFFER_SIZE
from rawhttp.exceptions import HTTPConnectionError, ProxyTunnelError
from rawhttp.utils.log import get_logger

logger = get_logger()

# 中间状态的 100 Continue 响应
INTERIM_CONTINUE_PATTERN = re.compile(rb'^HTTP/\d\.\d 100[^\r\n]*\r\n(?:[^\r\n]+\r\n)*\r\n')


def secure_context() -> ssl.SSLContext:
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    context.check_hostname = True
    return context


def insecure_context() -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


SECURE_CONTEXT = secure_context()

INSECURE_CONTEXT = insecure_context()


class Connection:
    __slots__ = ('url', 'config', 'sock', 'proxy_authorization')

    def __init__(self, url: URL, config: RequestConfig, proxy_authorization: str = None):
        self.url = url
        self.config = config
        self.sock = None
        self.proxy_authorization = proxy_authorization

    @property
    def connected(self) -> bool:
        return self.sock is not None

    def _context_factory(self):
        return secure_context() if self.config.verify_ssl else insecure_context()

    def _open_socket(self, host: str, port: int) -> socket.socket:
        logger.info(f'connect to {host}:{port}')
        try:
            sock = socket.create_connection((host, port), timeout=self.config.timeout or None)
        except socket.timeout:
            raise HTTPConnectionError(110, f'Connection to {host}:{port} timed out')
        except socket.gaierror as error:
            raise HTTPConnectionError(error.errno, error.strerror)
        except OSError as error:
            logger.info(f'connect to {host}:{port} failed: {error}')
            raise HTTPConnectionError(error.errno, error.strerror)
        return sock

    def open(self):
        if self.config.use_proxy:
            # 先连接到代理服务器
            self.sock = self._open_socket(self.config.proxy_host, self.config.proxy_port)
            if self.url.is_ssl:
                result = ProxyHandler.open_tunnel(self.sock, self.url, self.config, self._context_factory,
                                                  self.proxy_authorization)
                if result.error:
                    self.close()
                    raise ProxyTunnelError(result.error)
                self.sock = result.sock
            return self
        sock = self._open_socket(self.url.host, self.url.port)
        if self.url.is_ssl:
            context = SECURE_CONTEXT if self.config.verify_ssl else INSECURE_CONTEXT
            try:
                sock = context.wrap_socket(sock, server_hostname=self.url.host)
            except (ssl.SSLError, OSError) as error:
                sock.close()
                raise HTTPConnectionError(getattr(error, 'errno', 0), str(error))
        self.sock = sock
        return self

    def sendall(self, data: bytes):
        if not self.connected:
            return
        if self.config.print_message:
            logger.debug(f'Send HTTP Message:\n{data!r}')
        try:
            self.sock.sendall(data)
        except OSError as error:
            raise HTTPConnectionError(error.errno, error.strerror or str(error))

    def _read(self) -> bytes:
        # 读取超时和连接关闭同样处理
        try:
            return self.sock.recv(READ_BUFFER_SIZE)
        except socket.timeout:
            logger.info(f'read from {self.url.host}:{self.url.port} timed out')
            return b''
        except OSError as error:
            logger.info(f'read from {self.url.host}:{self.url.port} failed: {error}')
            return b''

    def read_response(self) -> Tuple[bytes, bytes]:
        """
        一直读到连接关闭：先读头部直到空行，剩下的都属于 body
        """
        if not self.connected:
            return b'', b''
        head, body = b'', b''
        data = b''
        eof = False
        while True:
            chunk = self._read()
            if not chunk:
                eof = True
                break
            data += chunk
            data = INTERIM_CONTINUE_PATTERN.sub(b'', data, count=1)
            position = data.find(HEADER_END)
            if position > 0:
                head = data[:position]
                body = data[position + len(HEADER_END):]
                break
        if not head:
            # 连接关闭时还没有读到空行
            head = data
        chunks = [body]
        while not eof:
            chunk = self._read()
            if not chunk:
                break
            chunks.append(chunk)
        body = b''.join(chunks)
        if self.config.print_message:
            logger.debug(f'receive HTTP Message:\n{head!r}')
        return head, body

    def close(self):
        if self.sock is None:
            return
        try:
            self.sock.close()
        finally:
            self.sock = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
