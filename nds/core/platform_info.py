"""
平台检测模块。

在进程内检测一次操作系统和 CPU 架构，用于拼接下载地址。
"""

import platform
from functools import lru_cache
from typing import NamedTuple

from nds.utils.logger import get_logger

logger = get_logger()

OS_MAP = {
    "linux": "linux",
    "darwin": "darwin",
}

ARCH_MAP = {
    "x86_64": "x64",
    "amd64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


class UnsupportedPlatformError(Exception):
    """不支持的平台异常。"""
    pass


class PlatformInfo(NamedTuple):
    """下载地址中使用的平台标识。"""

    os: str
    arch: str


def resolve_platform(system: str, machine: str) -> PlatformInfo:
    """
    将 platform.system() / platform.machine() 的结果映射为下载地址中的标识。
    
    参数:
        system: 操作系统名称
        machine: CPU 架构名称
        
    返回:
        PlatformInfo
        
    抛出:
        UnsupportedPlatformError: 操作系统或架构不受支持
    """
    os_name = OS_MAP.get(system.lower())
    if os_name is None:
        raise UnsupportedPlatformError(f"不支持的操作系统: {system}")
    arch = ARCH_MAP.get(machine.lower())
    if arch is None:
        raise UnsupportedPlatformError(f"不支持的 CPU 架构: {machine}")
    return PlatformInfo(os=os_name, arch=arch)


@lru_cache(maxsize=None)
def get_platform() -> PlatformInfo:
    """
    获取当前平台信息，整个进程只检测一次。
    
    返回:
        PlatformInfo
    """
    info = resolve_platform(platform.system(), platform.machine())
    logger.debug(f"检测到平台: {info.os}-{info.arch}")
    return info
