# -*- coding: utf-8 -*-
# @Time    : 2020-05-04 11:08
# @Author  : li
# @File    : multipart.py

import uuid
from collections import OrderedDict
from typing import Dict


class MultipartEncoder:
    """
    multipart/form-data body.  The client only uses ``compile()`` and
    ``get_content_type_header()``.
    """

    def __init__(self, params: Dict = None, delimiter: str = None):
        self.delimiter = delimiter or uuid.uuid4().hex
        self._fields = OrderedDict()
        self._files = OrderedDict()
        for name, value in (params or {}).items():
            self.set_field(name, value)

    def set_field(self, name: str, value):
        self._fields[name] = value

    def set_file(self, name: str, filename: str, content: bytes, mime: str = 'application/octet-stream'):
        self._files[name] = (filename, content, mime)

    def get_content_type_header(self) -> str:
        return f'multipart/form-data; boundary={self.delimiter}'

    @staticmethod
    def _to_bytes(value) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode('utf-8')

    def compile(self) -> bytes:
        boundary = b'--' + self.delimiter.encode('utf-8')
        body = bytearray()
        for name, value in self._fields.items():
            body += boundary + b'\r\n'
            body += f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode('utf-8')
            body += self._to_bytes(value) + b'\r\n'
        for name, (filename, content, mime) in self._files.items():
            body += boundary + b'\r\n'
            body += f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'.encode('utf-8')
            body += f'Content-Type: {mime}\r\n\r\n'.encode('utf-8')
            body += self._to_bytes(content) + b'\r\n'
        body += boundary + b'--\r\n'
        return bytes(body)
