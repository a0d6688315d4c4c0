"""
nds - Node.js 版本切换器。

管理本机安装的多个 Node.js 版本：列出、安装、切换、删除，以及按项目目录自动切换。
"""

__version__ = "0.1.0"
