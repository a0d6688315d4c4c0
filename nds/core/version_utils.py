"""
版本工具模块。

提供版本号解析、排序、按主版本号筛选等工具函数。
"""

import re
from typing import Iterable, List, Optional, Tuple

_VERSION_RE = re.compile(r'^v?(\d+(?:\.\d+)*)$')


def normalize_version(version_str: str) -> Optional[str]:
    """
    规范化版本字符串：去除空白和前导 v。
    
    参数:
        version_str: 版本字符串
        
    返回:
        规范化后的版本字符串，无法解析返回 None
    """
    if not version_str:
        return None
    match = _VERSION_RE.match(version_str.strip())
    if not match:
        return None
    return match.group(1)


def version_key(version_str: str) -> Tuple[int, ...]:
    """
    解析版本字符串为可比较的元组。
    
    按数字逐段比较，因此 9.0.0 < 10.0.0。
    
    参数:
        version_str: 版本字符串
        
    返回:
        版本元组 (major, minor, patch, ...)
    """
    parts = re.findall(r'\d+', version_str)
    return tuple(int(p) for p in parts) if parts else (0,)


def get_major(version_str: str) -> int:
    """获取主版本号。"""
    return version_key(version_str)[0]


def sort_versions_desc(versions: Iterable[str]) -> List[str]:
    """
    按版本号降序排列版本列表。
    
    参数:
        versions: 版本字符串列表
        
    返回:
        排序后的版本列表
    """
    return sorted(versions, key=version_key, reverse=True)


def sort_versions_asc(versions: Iterable[str]) -> List[str]:
    """按版本号升序排列版本列表。"""
    return sorted(versions, key=version_key)


def top_major_versions(versions: List[str], n: int = 5) -> List[str]:
    """
    只保留最新的 n 个主版本号下的版本。
    
    参数:
        versions: 降序排列的版本列表
        n: 保留的主版本数量
        
    返回:
        筛选后的版本列表，保持原有顺序
    """
    majors: List[int] = []
    for v in versions:
        major = get_major(v)
        if major not in majors:
            majors.append(major)
    keep = set(sorted(majors, reverse=True)[:n])
    return [v for v in versions if get_major(v) in keep]
