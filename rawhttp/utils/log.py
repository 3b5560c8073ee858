# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2019-08-17 20:50'

import logging


def get_logger(name: str = "rawhttp"):
    return logging.getLogger(name)


def set_logger(settings):
    file_path = settings.get("LOG_FILE_PATH", "")
    level = settings.get("LOG_LEVEL", "INFO")
    logging_format = "[%(name)s %(asctime)s %(levelname)s]: "
    logging_format += "%(message)s"

    # 路径为空时直接输出到终端
    logging.basicConfig(
        filename=file_path or None,
        format=logging_format,
        level=level,
        datefmt='%Y-%m-%d %H:%M:%S'
    )
