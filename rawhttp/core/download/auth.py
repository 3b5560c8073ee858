# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2020-05-03 14:40'

import base64
import hashlib
import re
import uuid
from enum import Enum
from typing import Dict
from rawhttp.const import DIGEST_NONCE_COUNT, HEADER_CODING
from rawhttp.exceptions import UnsupportedAuthScheme
from rawhttp.utils.log import get_logger

logger = get_logger()

# key=value 或 key="value, with comma"
CHALLENGE_PARAM_PATTERN = re.compile(r'\s*([^=,]+?)\s*=\s*("(?:[^"\\]|\\.)*"|[^,]*)\s*(?:,|$)')

DIGEST_ALGORITHMS = {
    "MD5": hashlib.md5,
    "SHA-256": hashlib.sha256,
}


class AuthState(Enum):
    NONE = 0
    BASIC = 1
    DIGEST = 2


class DigestChallenge:
    __slots__ = ('realm', 'nonce', 'qop', 'algorithm', 'opaque')

    def __init__(self, realm: str = '', nonce: str = '', qop: str = '', algorithm: str = '', opaque: str = ''):
        self.realm = realm
        self.nonce = nonce
        self.qop = qop
        self.algorithm = algorithm
        self.opaque = opaque

    @classmethod
    def from_params(cls, params: Dict) -> 'DigestChallenge':
        return cls(realm=params.get('realm', ''), nonce=params.get('nonce', ''), qop=select_qop(params.get('qop', '')),
                   algorithm=params.get('algorithm', ''), opaque=params.get('opaque', ''))

    def __repr__(self):
        return f'<DigestChallenge realm={self.realm!r} qop={self.qop!r} algorithm={self.algorithm!r}>'


def select_qop(qop: str) -> str:
    # 服务端可能同时提供 auth,auth-int，只实现了 auth
    options = [option.strip() for option in qop.split(',') if option.strip()]
    if not options:
        return ''
    return 'auth' if 'auth' in options else options[0]


def parse_challenge_params(value: str) -> Dict:
    """
    解析 WWW-Authenticate 的值。realm 前面的单词是认证方式，
    例如 'Digest realm="x", nonce="y"' 得到 {'Digest realm': 'x', 'nonce': 'y'}
    """
    params = {}
    for match in CHALLENGE_PARAM_PATTERN.finditer(value):
        key, param = match.group(1).strip(), match.group(2).strip()
        if param.startswith('"') and param.endswith('"') and len(param) > 1:
            param = param[1:-1].replace('\\"', '"')
        params[key] = param
    return params


def _hash(algorithm: str, data: str) -> str:
    digest = DIGEST_ALGORITHMS.get(algorithm.upper().replace('-SESS', ''), hashlib.md5)
    return digest(data.encode('utf-8')).hexdigest()


def digest_response(username: str, realm: str, password: str, method: str, uri: str,
                    nonce: str, nc: str, cnonce: str, qop: str, algorithm: str = 'MD5') -> str:
    """
    RFC 2617 response hash.  Only depends on its arguments.
    """
    algorithm = algorithm or 'MD5'
    ha1 = _hash(algorithm, f'{username}:{realm}:{password}')
    if algorithm.upper().endswith('-SESS'):
        ha1 = _hash(algorithm, f'{ha1}:{nonce}:{cnonce}')
    ha2 = _hash(algorithm, f'{method.upper()}:{uri}')
    if not qop:
        # RFC 2069 兼容方式
        return _hash(algorithm, f'{ha1}:{nonce}:{ha2}')
    return _hash(algorithm, f'{ha1}:{nonce}:{nc}:{cnonce}:{qop}:{ha2}')


def basic_authorization(username: str, password: str) -> str:
    credentials = f'{username or ""}:{password or ""}'.encode('utf-8')
    return 'Basic ' + base64.b64encode(credentials).decode(HEADER_CODING)


def generate_cnonce() -> str:
    return uuid.uuid4().hex[:16]


class AuthEngine:
    __slots__ = ('state', 'challenge')

    def __init__(self):
        self.state = AuthState.NONE
        self.challenge = None

    @property
    def pending(self) -> bool:
        return self.state != AuthState.NONE

    def reset(self):
        self.state = AuthState.NONE
        self.challenge = None

    def activate(self, scheme: str, challenge: DigestChallenge = None):
        scheme = (scheme or '').strip().lower()
        if scheme == 'basic':
            self.state = AuthState.BASIC
            self.challenge = None
        elif scheme == 'digest':
            self.state = AuthState.DIGEST
            self.challenge = challenge or DigestChallenge()
        else:
            raise UnsupportedAuthScheme(f'unknown auth method {scheme!r} required')

    def parse_challenge(self, value: str) -> bool:
        """
        Update the state from a ``WWW-Authenticate`` value.  Returns False and
        keeps the current state when the scheme is not Basic or Digest.
        """
        params = parse_challenge_params(value or '')
        scheme = None
        for key in list(params):
            tokens = key.split()
            if len(tokens) > 1 and tokens[-1].lower() == 'realm':
                scheme = tokens[0]
                params['realm'] = params.pop(key)
                break
        if scheme is None:
            # 没有 realm 的情况下，取第一个单词作为认证方式
            scheme = (value or '').strip().split(' ', 1)[0]
            first_key = next(iter(params), '')
            if first_key.startswith(scheme + ' '):
                params[first_key[len(scheme) + 1:].strip()] = params.pop(first_key)
        try:
            self.activate(scheme, DigestChallenge.from_params(params))
        except UnsupportedAuthScheme:
            logger.info(f'ignore unsupported auth challenge {value!r}')
            return False
        logger.info(f'server requested {self.state.name.lower()} authentication')
        return True

    def authorization(self, method: str, uri: str, username: str, password: str, cnonce: str = None) -> str:
        if self.state == AuthState.BASIC:
            return basic_authorization(username, password)
        if self.state == AuthState.DIGEST:
            return self._digest_authorization(method, uri, username or '', password or '', cnonce or generate_cnonce())
        raise UnsupportedAuthScheme('unknown auth method required')

    def _digest_authorization(self, method: str, uri: str, username: str, password: str, cnonce: str) -> str:
        challenge = self.challenge
        nc = DIGEST_NONCE_COUNT if challenge.qop else ''
        cnonce = cnonce if challenge.qop else ''
        data = (
            ('username', username),
            ('realm', challenge.realm),
            ('qop', challenge.qop),
            ('algorithm', challenge.algorithm),
            ('uri', uri),
            ('nonce', challenge.nonce),
            ('nc', nc),
            ('cnonce', cnonce),
            ('opaque', challenge.opaque),
            ('response', digest_response(username, challenge.realm, password, method, uri,
                                         challenge.nonce, nc, cnonce, challenge.qop, challenge.algorithm)),
        )
        # 空值不能发送，否则服务端会校验失败
        return 'Digest ' + ','.join(f'{key}="{value}"' for key, value in data if value)
