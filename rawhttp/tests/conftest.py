# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2020-05-05 10:02'

import re
import socket
import threading
import pytest

CONTENT_LENGTH_PATTERN = re.compile(rb'^content-length:\s*(\d+)', re.I | re.M)

CHUNKED_BODY_PATTERN = re.compile(rb'^transfer-encoding:[^\r\n]*chunked', re.I | re.M)


class ScriptedServer:
    """
    本地 tcp 服务：每个连接读取一个请求，按顺序回放一条原始响应后关闭连接。
    响应是 tuple 时在同一个连接上依次读请求、回放(代理隧道)。
    repeat 为 True 时最后一条响应会一直重复。
    """

    def __init__(self, responses, repeat=False):
        self.responses = list(responses)
        self.repeat = repeat
        self.requests = []
        self._stop = threading.Event()
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind(('127.0.0.1', 0))
        self._listener.listen(16)
        self._listener.settimeout(0.2)
        self.port = self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def url(self, path='/'):
        return f'http://127.0.0.1:{self.port}{path}'

    def _next_response(self):
        if len(self.responses) > 1 or (self.responses and not self.repeat):
            return self.responses.pop(0)
        return self.responses[0] if self.responses else None

    @staticmethod
    def _read_request(conn):
        data = b''
        while b'\r\n\r\n' not in data:
            chunk = conn.recv(1024)
            if not chunk:
                return data
            data += chunk
        head, _, body = data.partition(b'\r\n\r\n')
        match = CONTENT_LENGTH_PATTERN.search(head)
        if match:
            length = int(match.group(1))
            while len(body) < length:
                chunk = conn.recv(1024)
                if not chunk:
                    break
                body += chunk
        elif CHUNKED_BODY_PATTERN.search(head):
            while not body.endswith(b'0\r\n\r\n'):
                chunk = conn.recv(1024)
                if not chunk:
                    break
                body += chunk
        return head + b'\r\n\r\n' + body

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            response = self._next_response()
            parts = response if isinstance(response, tuple) else (response,)
            with conn:
                conn.settimeout(5)
                for part in parts:
                    try:
                        request = self._read_request(conn)
                        # 客户端没有发送请求就关闭了连接
                        if not request:
                            break
                        self.requests.append(request)
                        if part is None:
                            break
                        conn.sendall(part)
                    except OSError:
                        break
            if response is None:
                break

    def close(self):
        self._stop.set()
        self._thread.join(timeout=2)
        self._listener.close()


@pytest.fixture
def scripted_server():
    servers = []

    def factory(*responses, repeat=False):
        server = ScriptedServer(responses, repeat=repeat)
        servers.append(server)
        return server

    yield factory
    for server in servers:
        server.close()


@pytest.fixture
def closed_port():
    # 拿到一个空闲端口后立刻释放，连接时会被拒绝
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
