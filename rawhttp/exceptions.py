# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2020-05-02 21:30'


class HTTPClientError(Exception):
    # 记录到交换结果中的状态码
    code = 0


class HTTPConnectionError(HTTPClientError):
    def __init__(self, errno: int, strerror: str):
        self.errno = errno or 0
        self.strerror = strerror or ''
        self.code = self.errno
        super().__init__(f'{self.errno} {self.strerror}'.strip())


class ProxyTunnelError(HTTPClientError): pass


class ProtocolError(HTTPClientError):
    code = -1


class MissingSchema(ProtocolError): pass


class AuthError(HTTPClientError): pass


class UnsupportedAuthScheme(AuthError): pass


class HTTPStatusError(HTTPClientError):
    def __init__(self, code: int, message: str):
        self.code = code
        super().__init__(message)


class TooManyRedirects(HTTPClientError): pass


class UnknownOption(HTTPClientError): pass


class InvalidHeader(ProtocolError): pass
