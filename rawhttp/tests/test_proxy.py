# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2020-05-09 21:15'

import socket
from rawhttp.core.download.config import RequestConfig
from rawhttp.core.download.connection import insecure_context
from rawhttp.core.download.proxy import ProxyHandler
from rawhttp.core.download.url import parse_url


def test_connect_request():
    request = ProxyHandler.connect_request(parse_url('https://example.com/path'), RequestConfig(user_agent='ua'),
                                           'Basic abc')
    assert request == (b'CONNECT example.com:443 HTTP/1.1\r\nHost: example.com:443\r\nUser-Agent: ua\r\n'
                       b'Proxy-Authorization: Basic abc\r\n\r\n')


def test_proxy_authorization_from_headers_or_config():
    config = RequestConfig(proxy_user='user', proxy_pass='pass')
    assert ProxyHandler.get_proxy_authorization(config, {'proxy-authorization': 'Basic xyz'}) == 'Basic xyz'
    assert ProxyHandler.get_proxy_authorization(config).startswith('Basic ')
    assert ProxyHandler.get_proxy_authorization(RequestConfig()) is None


def test_read_connect_response_stops_at_blank_line():
    client, peer = socket.socketpair()
    with client, peer:
        peer.sendall(b'HTTP/1.1 200 Connection established\r\n\r\n\x16\x03\x01')
        assert ProxyHandler.read_connect_response(client) == b'HTTP/1.1 200 Connection established\r\n\r\n'
        assert client.recv(3) == b'\x16\x03\x01'


def test_failed_handshake_is_attempted_once():
    client, peer = socket.socketpair()
    contexts = []

    def context_factory():
        contexts.append(insecure_context())
        return contexts[-1]

    with peer:
        peer.sendall(b'this is not a tls record\r\n' * 4)
        peer.shutdown(socket.SHUT_WR)
        client.settimeout(2)
        result = ProxyHandler.upgrade(client, 'example.com', context_factory)
    client.close()
    assert result.sock is None
    assert 'could not negotiate secure connection' in result.error
    assert len(contexts) == 1
