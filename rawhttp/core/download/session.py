# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019-07-21 00:43'

from collections.abc import Mapping
from enum import Enum
from typing import Dict, List, Optional, Union
from urllib.parse import urlencode
from .auth import AuthEngine
from .config import RequestConfig
from .connection import Connection
from .cookies import CookiesJar
from .proxy import ProxyHandler
from .request import Request
from .response import Response
from .url import parse_url, join_url
from rawhttp.const import REDIRECT_CODES, UNAUTHORIZED
from rawhttp.exceptions import HTTPClientError, HTTPStatusError, TooManyRedirects
from rawhttp.settings import Settings
from rawhttp.utils.datatypes import Headers
from rawhttp.utils.log import get_logger, set_logger
from rawhttp.utils.multipart import MultipartEncoder

logger = get_logger()

FORM_URLENCODED = 'application/x-www-form-urlencoded'


class ExchangeState(Enum):
    INIT = 1
    CONNECTED = 2
    REQUEST_SENT = 3
    RESPONSE_READ = 4
    PARSED = 5
    DONE = 6
    RETRYING = 7


class ExchangeResult:
    __slots__ = ('code', 'status_text', 'content', 'raw_headers', 'headers', 'error', 'request', 'decoded')

    def __init__(self):
        self.reset()

    def reset(self):
        self.code = 0
        self.status_text = ''
        self.content = None
        self.raw_headers = None
        self.headers = Headers()
        self.error = ''
        self.request = b''
        self.decoded = False

    def populate(self, response: Response):
        self.code = response.status_code
        self.status_text = response.status_text
        self.content = response.content
        self.raw_headers = response.raw_headers
        self.headers = response.headers
        self.error = response.error
        self.decoded = response.decoded

    def record(self, error: HTTPClientError):
        # 没有自己状态码的错误保留最后一次响应的状态码
        if error.code:
            self.code = error.code
        self.error = str(error) or error.__class__.__name__


class Session:
    """
    Blocking HTTP/1.x client on raw sockets.

    One instance owns its configuration, cookies and auth state, so it must
    not be shared between threads.  Every exchange opens a new connection
    and closes it before the next one starts.
    """
    __slots__ = ('config', 'url', 'cookies', 'auth', 'state', 'result', '_headers')

    def __init__(self, settings: Settings = None, **options):
        self.config = RequestConfig.from_settings(settings if settings is not None else Settings())
        self.config.update(**options)
        self.url = None
        # 全局的cookies容器，跳转和认证重试之间共享
        self.cookies = CookiesJar()
        self.auth = AuthEngine()
        self.state = ExchangeState.INIT
        self.result = ExchangeResult()
        # 用户设置的请求头部
        self._headers = {}

    @classmethod
    def from_settings(cls, settings: Settings, **options) -> 'Session':
        set_logger(settings)
        return cls(settings=settings, **options)

    # 配置
    def set_option(self, name: str, value):
        self.config.set_option(name, value)

    def configure(self, **options) -> 'Session':
        self.config.update(**options)
        return self

    def set_header(self, name: str, value: Optional[str]):
        if value:
            self._headers[name] = value
        else:
            self._headers.pop(name, None)

    def add_cookies(self, cookies: Dict):
        self.cookies.add_cookies(cookies)

    # 结果
    @property
    def error(self) -> str:
        return self.result.error

    @property
    def code(self) -> int:
        return self.result.code

    @property
    def request(self) -> bytes:
        return self.result.request

    @property
    def response(self) -> Optional[bytes]:
        return self.result.content

    @property
    def headers(self) -> Headers:
        return self.result.headers

    @property
    def timeout(self):
        return self.config.timeout

    def get_cookies(self) -> Dict:
        return self.cookies.dump()

    def has_error(self) -> bool:
        return bool(self.result.error)

    def get_response_header(self, name: str) -> Optional[str]:
        return self.result.headers.get(name)

    def get_response_header_keys(self) -> List[str]:
        return list(self.result.headers.keys())

    def raise_for_status(self):
        if self.has_error():
            raise HTTPStatusError(self.result.code, self.result.error)

    # 单次请求
    def _credentials(self):
        # url 中带了用户名时优先使用
        if self.url.user is not None:
            return self.url.user, self.url.password
        return self.config.username, self.config.password

    def _request_headers(self) -> Dict:
        if not self.config.use_proxy:
            return dict(self._headers)
        # Proxy-Authorization 只发给代理服务器
        return {key: value for key, value in self._headers.items() if key.lower() != 'proxy-authorization'}

    def _build_request(self, proxy_authorization: str = None) -> Request:
        method = (self.config.method or 'GET').upper()
        full_path = self.url.full_path(method)
        authorization = None
        if self.auth.pending:
            username, password = self._credentials()
            authorization = self.auth.authorization(method, full_path, username, password)
        return Request(self.config, self.url, headers=self._request_headers(),
                       cookies=self.cookies.compile_cookies(self.url.host, full_path),
                       authorization=authorization, proxy_authorization=proxy_authorization)

    def perform_request(self) -> bool:
        """
        连接 -> 构造请求 -> 发送 -> 读取 -> 解析 -> 断开。
        出错时记录到结果中，连接无论如何都会关闭
        """
        self.result.reset()
        self.state = ExchangeState.INIT
        proxy_authorization = None
        if self.config.use_proxy:
            proxy_authorization = ProxyHandler.get_proxy_authorization(self.config, self._headers)
        connection = Connection(self.url, self.config, proxy_authorization)
        try:
            connection.open()
            self.state = ExchangeState.CONNECTED
            request = self._build_request(proxy_authorization)
            self.result.request = request.encode()
            connection.sendall(self.result.request)
            self.state = ExchangeState.REQUEST_SENT
            head, body = connection.read_response()
            self.state = ExchangeState.RESPONSE_READ
            response = Response(self.url).parse(head, body, self.cookies, self.auth, request.method)
            self.result.populate(response)
            self.state = ExchangeState.PARSED
        except HTTPClientError as error:
            logger.info(f'request to {self.url.raw} failed: {error}')
            self.result.record(error)
        finally:
            connection.close()
        return not self.has_error()

    def _follow(self, location: str) -> bool:
        try:
            self.url = join_url(self.url, location)
        except HTTPClientError as error:
            self.result.record(error)
            return False
        # 跳转之后一律使用 GET，丢弃请求体
        self.config.method = 'GET'
        self.config.data = b''
        return True

    def send(self, url: str, data: Union[bytes, str] = None, method: str = None) -> bool:
        if data is not None:
            self.config.set_option('data', data)
        if method:
            self.config.method = method
        self.auth.reset()
        self.state = ExchangeState.INIT
        try:
            self.url = parse_url(url)
        except HTTPClientError as error:
            self.result.reset()
            self.result.record(error)
            return False

        self.perform_request()
        redirects = 0
        while True:
            code = self.result.code
            if code == UNAUTHORIZED and self.auth.pending:
                logger.info(f'retry {self.url.raw} with {self.auth.state.name.lower()} authentication')
                self.state = ExchangeState.RETRYING
                self.perform_request()
                # 认证信息只用于这一次重试，之后的跳转不再携带
                self.auth.reset()
                # 用户名或密码错误，不再重试
                if self.result.code == UNAUTHORIZED:
                    break
                continue
            if code in REDIRECT_CODES and self.config.follow_redirects:
                location = self.result.headers.get('Location')
                if not location:
                    break
                if self.config.max_redirects and redirects >= self.config.max_redirects:
                    self.result.record(TooManyRedirects(f'Exceeded {self.config.max_redirects} redirects'))
                    break
                if not self._follow(location):
                    break
                redirects += 1
                logger.info(f'redirect to {self.url.raw}')
                self.state = ExchangeState.RETRYING
                self.perform_request()
                continue
            break
        self.state = ExchangeState.DONE
        # 一次 send 的认证信息不保留
        self.auth.reset()
        return not self.has_error()

    def get_url_encoded(self, url: str, fields: Union[Dict, str] = None) -> bool:
        self.config.data = b''
        self.config.data_mime = ''
        data = urlencode(fields) if isinstance(fields, Mapping) else (fields or '')
        if data:
            url += ('&' if '?' in url else '?') + data
        return self.send(url, None, 'GET')

    def post_url_encoded(self, url: str, fields: Dict = None) -> bool:
        self.config.data_mime = FORM_URLENCODED
        return self.send(url, urlencode(fields or {}), 'POST')

    def post_multipart_formdata(self, url: str, fields: Union[Dict, MultipartEncoder] = None) -> bool:
        if isinstance(fields, Mapping):
            fields = MultipartEncoder(params=fields)
        elif not (hasattr(fields, 'compile') and hasattr(fields, 'get_content_type_header')):
            return False
        self.config.data_mime = fields.get_content_type_header()
        return self.send(url, fields.compile(), 'POST')

    def close(self):
        # 每次请求结束时连接已经关闭，这里只清理会话状态
        self.auth.reset()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
