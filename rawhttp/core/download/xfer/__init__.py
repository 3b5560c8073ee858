# -*- coding: utf-8 -*-
# @Time    : 2020-04-22 20:39
# @Author  : li
# @File    : __init__.py

"""
Transfer/content codecs used on request and response bodies.

Every decoder is best effort: when the data can not be decoded the original
bytes are handed back untouched instead of raising.  ``on_unpack`` reports
which of the two happened through ``DecodeResult.decoded``.
"""

import gzip
import re
import zlib
from abc import abstractmethod
from collections import namedtuple
from typing import List
from bitarray import bitarray
from bitarray.util import ba2int, int2ba
from rawhttp.const import XFER_IDENTITY, XFER_CHUNKED, XFER_GZIP, XFER_DEFLATE, XFER_COMPRESS, CRLF
from rawhttp.utils.log import get_logger

logger = get_logger()

GZIP_MAGIC = b'\x1f\x8b'

# gzip 固定头部的长度：magic(2) + method(1) + flags(1) + mtime(4) + xfl(1) + os(1)
GZIP_HEADER_LENGTH = 10

DEFAULT_CHUNK_SIZE = 8192

# chunk-size 只能是十六进制数字，不允许符号和前缀
CHUNK_SIZE_PATTERN = re.compile(rb'[0-9A-Fa-f]+')

DecodeResult = namedtuple('DecodeResult', ['data', 'decoded'])


class BaseXferFilter:
    __aliases__ = ()

    @classmethod
    @abstractmethod
    def id(cls) -> 'int':
        """
        获取传输过滤器编号
        :return:
        """

    @classmethod
    @abstractmethod
    def name(cls) -> 'str':
        """
        获取传输过滤器名称
        :return:
        """

    @classmethod
    def aliases(cls) -> 'tuple':
        return cls.__aliases__

    @classmethod
    @abstractmethod
    def on_pack(cls, data: 'bytes') -> 'bytes':
        """
        对二进制数据进行编码，无法编码时原样返回
        :param data:
        :return:
        """

    @classmethod
    @abstractmethod
    def on_unpack(cls, data: 'bytes') -> 'DecodeResult':
        """
        对二进制数据进行解码，失败时返回 DecodeResult(原始数据, False)
        :param data:
        :return:
        """


class XferFilterMap:
    __id_map__ = {}
    __name__map__ = {}

    @classmethod
    def get(cls, id: 'int') -> BaseXferFilter:
        return cls.__id_map__.get(id)

    @classmethod
    def get_by_name(cls, name: 'str') -> BaseXferFilter:
        if not name:
            return None
        return cls.__name__map__.get(name.strip().lower())

    @classmethod
    def register(cls, ):
        def decorate_xfer_filter(xfer_filter_cls):
            assert issubclass(xfer_filter_cls, BaseXferFilter), "must BaseXferFilter subclass"
            # 先去重
            if xfer_filter_cls.id() in cls.__id_map__:
                raise Exception(f'multi-register transfer filter id: {xfer_filter_cls.id()}')
            names = (xfer_filter_cls.name(),) + tuple(xfer_filter_cls.aliases())
            for name in names:
                if name in cls.__name__map__:
                    raise Exception(f'multi-register transfer filter name: {name}')
            cls.__id_map__[xfer_filter_cls.id()] = xfer_filter_cls
            for name in names:
                cls.__name__map__[name] = xfer_filter_cls
            return xfer_filter_cls

        return decorate_xfer_filter


@XferFilterMap.register()
class Identity(BaseXferFilter):
    __filter_name__ = "identity"
    __id__ = XFER_IDENTITY

    @classmethod
    def name(cls) -> 'str':
        return cls.__filter_name__

    @classmethod
    def id(cls) -> 'int':
        return cls.__id__

    @classmethod
    def on_pack(cls, data: 'bytes') -> 'bytes':
        return data

    @classmethod
    def on_unpack(cls, data: 'bytes') -> 'DecodeResult':
        return DecodeResult(data, False)


@XferFilterMap.register()
class Chunked(BaseXferFilter):
    __filter_name__ = "chunked"
    __id__ = XFER_CHUNKED

    @classmethod
    def name(cls) -> 'str':
        return cls.__filter_name__

    @classmethod
    def id(cls) -> 'int':
        return cls.__id__

    @classmethod
    def on_pack(cls, data: 'bytes', chunk_size: 'int' = DEFAULT_CHUNK_SIZE) -> 'bytes':
        packed = bytearray()
        for start in range(0, len(data), chunk_size):
            chunk = data[start:start + chunk_size]
            packed += b'%x' % len(chunk) + CRLF + chunk + CRLF
        packed += b'0' + CRLF + CRLF
        return bytes(packed)

    @classmethod
    def on_unpack(cls, data: 'bytes') -> 'DecodeResult':
        content = bytearray()
        position = 0
        total = len(data)
        while position < total:
            line_end = data.find(CRLF, position)
            if line_end < 0:
                line_end = total
            # 忽略 chunk-extension
            size_line = data[position:line_end].split(b';', 1)[0].strip()
            if not CHUNK_SIZE_PATTERN.fullmatch(size_line):
                logger.debug(f'invalid chunk size line {size_line!r}, keep the raw body')
                return DecodeResult(data, False)
            chunk_size = int(size_line, 16)
            if chunk_size == 0:
                # 不支持 trailer，遇到最后一个分块直接结束
                break
            start = line_end + len(CRLF)
            content += data[start:start + chunk_size]
            position = start + chunk_size + len(CRLF)
        return DecodeResult(bytes(content), True)


@XferFilterMap.register()
class Gzip(BaseXferFilter):
    __filter_name__ = "gzip"
    __aliases__ = ("x-gzip",)
    __id__ = XFER_GZIP

    @classmethod
    def name(cls) -> 'str':
        return cls.__filter_name__

    @classmethod
    def id(cls) -> 'int':
        return cls.__id__

    @classmethod
    def on_pack(cls, data: 'bytes') -> 'bytes':
        return gzip.compress(data)

    @classmethod
    def on_unpack(cls, data: 'bytes') -> 'DecodeResult':
        # 没有 magic number 说明服务端标错了编码，直接原样返回
        if data[:2] != GZIP_MAGIC:
            return DecodeResult(data, False)
        try:
            decoded = zlib.decompress(data, 16 + zlib.MAX_WBITS)
        except zlib.error:
            decoded = b''
        if not decoded:
            # 去掉固定长度的头部，再按照裸 deflate 流解压
            try:
                decoded = zlib.decompressobj(-zlib.MAX_WBITS).decompress(data[GZIP_HEADER_LENGTH:])
            except zlib.error:
                decoded = b''
        if not decoded:
            logger.debug('gzip decode failed, keep the raw body')
            return DecodeResult(data, False)
        return DecodeResult(decoded, True)


@XferFilterMap.register()
class Deflate(BaseXferFilter):
    __filter_name__ = "deflate"
    __id__ = XFER_DEFLATE

    @classmethod
    def name(cls) -> 'str':
        return cls.__filter_name__

    @classmethod
    def id(cls) -> 'int':
        return cls.__id__

    @classmethod
    def on_pack(cls, data: 'bytes') -> 'bytes':
        return zlib.compress(data)

    @classmethod
    def on_unpack(cls, data: 'bytes') -> 'DecodeResult':
        try:
            decoded = zlib.decompress(data)
        except zlib.error:
            decoded = b''
        if decoded:
            return DecodeResult(decoded, True)
        # 部分服务端(比如 IIS)发送的是没有 zlib 头部和 adler32 校验的裸 deflate 数据
        try:
            decoded = zlib.decompressobj(-zlib.MAX_WBITS).decompress(data)
        except zlib.error:
            decoded = b''
        if decoded:
            return DecodeResult(decoded, True)
        # 最后尝试按照 gzip 解码
        return Gzip.on_unpack(data)


@XferFilterMap.register()
class Compress(BaseXferFilter):
    """
    LZW ("compress").

    The dictionary starts with the 256 single bytes and grows by one entry
    for every emitted code; codes are written MSB first with a width that
    starts at 8 bits and grows whenever the running counter reaches the next
    power of two.  The last byte is zero padded.  There is no ``1f 9d`` magic
    header and no dictionary reset, so the output does not interoperate with
    other ``compress`` implementations and the encoding is never advertised
    in ``Accept-Encoding``.
    """
    __filter_name__ = "compress"
    __aliases__ = ("x-compress",)
    __id__ = XFER_COMPRESS

    @classmethod
    def name(cls) -> 'str':
        return cls.__filter_name__

    @classmethod
    def id(cls) -> 'int':
        return cls.__id__

    @classmethod
    def on_pack(cls, data: 'bytes') -> 'bytes':
        dictionary = {bytes([i]): i for i in range(256)}
        word = b''
        codes = []
        for byte in data:
            x = bytes([byte])
            if word + x in dictionary:
                word += x
                continue
            if word:
                codes.append(dictionary[word])
                dictionary[word + x] = len(dictionary)
            word = x
        if word:
            codes.append(dictionary[word])

        bits = bitarray(endian='big')
        dictionary_count = 256
        width = 8
        for code in codes:
            bits.extend(int2ba(code, length=width, endian='big'))
            dictionary_count += 1
            if dictionary_count >> width:
                width += 1
        # tobytes 会在最后一个字节的低位补 0
        return bits.tobytes()

    @classmethod
    def _read_codes(cls, data: 'bytes') -> 'List':
        bits = bitarray(endian='big')
        bits.frombytes(data)
        codes = []
        dictionary_count = 256
        width = 8
        position = 0
        while position + width <= len(bits):
            codes.append(ba2int(bits[position:position + width]))
            position += width
            dictionary_count += 1
            if dictionary_count >> width:
                width += 1
        return codes

    @classmethod
    def on_unpack(cls, data: 'bytes') -> 'DecodeResult':
        dictionary = [bytes([i]) for i in range(256)]
        content = bytearray()
        word = b''
        for index, code in enumerate(cls._read_codes(data)):
            if code < len(dictionary):
                element = dictionary[code]
            elif code == len(dictionary) and word:
                element = word + word[:1]
            else:
                logger.debug(f'invalid lzw code {code}, keep the raw body')
                return DecodeResult(data, False)
            content += element
            if index:
                dictionary.append(word + element[:1])
            word = element
        return DecodeResult(bytes(content), True)


def decode_chunked(data: 'bytes') -> 'bytes':
    return Chunked.on_unpack(data).data


def encode_chunked(data: 'bytes', chunk_size: 'int' = DEFAULT_CHUNK_SIZE) -> 'bytes':
    return Chunked.on_pack(data, chunk_size)


def decode_gzip(data: 'bytes') -> 'bytes':
    return Gzip.on_unpack(data).data


def encode_gzip(data: 'bytes') -> 'bytes':
    return Gzip.on_pack(data)


def decode_deflate(data: 'bytes') -> 'bytes':
    return Deflate.on_unpack(data).data


def encode_deflate(data: 'bytes') -> 'bytes':
    return Deflate.on_pack(data)


def decode_compress(data: 'bytes') -> 'bytes':
    return Compress.on_unpack(data).data


def encode_compress(data: 'bytes') -> 'bytes':
    return Compress.on_pack(data)


def split_encodings(header_value: 'str') -> 'List':
    if not header_value:
        return []
    return [name.strip().lower() for name in header_value.split(',') if name.strip()]


def decode_body(data: 'bytes', header_value: 'str') -> 'DecodeResult':
    """
    按照 Transfer-Encoding / Content-Encoding 的值解码。
    多个编码时，最后声明的最先解开；不认识的编码跳过。
    """
    decoded = False
    for name in reversed(split_encodings(header_value)):
        xfer_filter = XferFilterMap.get_by_name(name)
        if xfer_filter is None:
            logger.debug(f'unknown encoding {name!r}, leave body as it is')
            continue
        result = xfer_filter.on_unpack(data)
        data = result.data
        decoded = decoded or result.decoded
    return DecodeResult(data, decoded)


def encode_body(data: 'bytes', name: 'str') -> 'DecodeResult':
    """
    按照名称编码请求体，返回 (数据, 是否真的编码了)
    """
    xfer_filter = XferFilterMap.get_by_name(name)
    if xfer_filter is None or xfer_filter.id() == XFER_IDENTITY:
        return DecodeResult(data, False)
    return DecodeResult(xfer_filter.on_pack(data), True)
