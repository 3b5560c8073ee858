# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2020-05-02 21:10'

from .settings import Settings
from .core.download.session import Session, ExchangeState, ExchangeResult
from .core.download.cookies import Cookie, CookiesJar
from .utils.multipart import MultipartEncoder
from .utils.log import set_logger, get_logger

__version__ = "0.1.0"
