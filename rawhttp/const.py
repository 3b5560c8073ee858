# -*- coding: utf-8 -*-
# @Time    : 2020-05-02 21:14
# @Author  : li
# @File    : const.py

from types import MappingProxyType

CRLF = b'\r\n'

HEADER_END = b'\r\n\r\n'

DEFAULT_CODING = "utf-8"

# 请求头部使用的编码
HEADER_CODING = "latin-1"

# socket 每次读取的字节数
READ_BUFFER_SIZE = 1024

DEFAULT_PORTS = MappingProxyType({
    "http": 80,
    "https": 443,
})

# 状态码 -> 状态描述，找不到时退回到 code // 100 * 100
HTTP_STATUS_TEXT = MappingProxyType({
    100: 'Continue',
    101: 'Switching Protocols',
    200: 'OK',
    201: 'Created',
    202: 'Accepted',
    203: 'Non-Authoritative Information',
    204: 'No Content',
    205: 'Reset Content',
    206: 'Partial Content',
    207: 'Multi-Status',
    300: 'Multiple Choices',
    301: 'Moved Permanently',
    302: 'Found',
    303: 'See Other',
    304: 'Not Modified',
    305: 'Use Proxy',
    307: 'Temporary Redirect',
    400: 'Bad Request',
    401: 'Unauthorized',
    402: 'Payment Required',
    403: 'Forbidden',
    404: 'Not Found',
    405: 'Method Not Allowed',
    406: 'Not Acceptable',
    407: 'Proxy Authentication Required',
    408: 'Request Timeout',
    409: 'Conflict',
    410: 'Gone',
    411: 'Length Required',
    412: 'Precondition Failed',
    413: 'Request Entity Too Large',
    414: 'Request-URI Too Large',
    415: 'Unsupported Media Type',
    416: 'Requested Range Not Satisfiable',
    417: 'Expectation Failed',
    500: 'Internal Server Error',
    501: 'Not Implemented',
    502: 'Bad Gateway',
    503: 'Service Unavailable',
    504: 'Gateway Timeout',
    505: 'HTTP Version Not Supported',
})

# 视为成功的状态码
SUCCESS_CODES = (200, 304)

REDIRECT_CODES = (301, 302, 303)

UNAUTHORIZED = 401

# 传输过滤器编号
XFER_IDENTITY = 0
XFER_CHUNKED = 1
XFER_GZIP = 2
XFER_DEFLATE = 3
XFER_COMPRESS = 4

# digest 认证固定的 nonce count
DIGEST_NONCE_COUNT = "00000001"


def status_text_for(code: int) -> str:
    try:
        return HTTP_STATUS_TEXT[code]
    except KeyError:
        return HTTP_STATUS_TEXT.get(code // 100 * 100, "")
