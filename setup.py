import sys
from setuptools import setup, find_packages


PY_VER = sys.version_info

if PY_VER < (3, 7):
    raise RuntimeError("rawhttp doesn't support Python version prior 3.7")


setup(
    name="rawhttp",
    version="0.1.0",
    author="liyong",
    description="Python 3.7+ HTTP/1.1 client built directly on sockets.",
    long_description_content_type="text/markdown",
    author_email="819078740@qq.com",
    python_requires=">=3.7",
    install_requires=["httptools", "bitarray", "w3lib"],
    extras_require={
        "test": ["pytest"],
    },
    packages=find_packages(),
    license="MIT",
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: POSIX :: Linux",
        "Operating System :: POSIX :: BSD",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python :: 3.7",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
