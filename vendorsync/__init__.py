"""vendorsync - 源码依赖的安装/更新引擎"""

__version__ = "0.3.0"
