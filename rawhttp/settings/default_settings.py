# -*- coding:utf-8 -*-
__author__ = 'liyong'
__date__ = '2020-05-02 22:05'

# 记录日志的文件的path，如果为空则不保存日志，直接输出
LOG_FILE_PATH = ""

LOG_LEVEL = "INFO"

# 是否在日志中打印发送和接收的原始报文
PRINT_MESSAGE = False

# request
# 默认的 User-Agent
USER_AGENT = "Mozilla/5.0 (compatible; rawhttp/0.1.0; rv:1.0)"

HTTP_VERSION = "1.1"

METHOD = "GET"

# 请求体的默认类型
DATA_MIME = "application/octet-stream"

ACCEPT = "*/*"

# 可以接受的编码，值为 0 表示拒绝。
# compress 的编解码器与其他实现不兼容，所以不在这里声明
ACCEPT_ENCODING = {
    "chunked": 1,
    "identity": 0,
    "gzip": 1,
    "deflate": 1,
}

# 发送请求体时使用的编码，为空则不编码
USE_TRANSFER_ENCODING = ""

USE_CONTENT_ENCODING = ""

# 是否跟随跳转
FOLLOW_REDIRECTS = True
# 最大跳转次数，0 表示不限制
MAX_REDIRECTS = 10

# 超时时间
TIMEOUT = 5

# https 是否校验证书
VERIFY_SSL = True

# proxy
PROXY_HOST = ""

PROXY_PORT = 8080

PROXY_USER = ""

PROXY_PASS = ""

# auth
USERNAME = None

PASSWORD = None
