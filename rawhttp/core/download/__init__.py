# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019-07-20 00:50'

from .session import Session
from .request import Request
from .response import Response
from .url import URL, parse_url
