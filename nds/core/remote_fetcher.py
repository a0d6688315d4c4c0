"""
远程版本获取模块。

从下载源的 index.tab 获取 Node.js 可用版本列表。每次调用都重新请求，不做缓存。
"""

from typing import Optional, List, Dict, Any

import requests

from nds.utils.logger import get_logger
from nds.core.config_manager import ConfigManager
from nds.core.interfaces import IRemoteFetcher
from nds.core import version_utils

logger = get_logger()

# index.tab 列序号：version date files npm v8 uv zlib openssl modules lts security
VERSION_COLUMN = 0
DATE_COLUMN = 1
LTS_COLUMN = 9


class RemoteFetcherError(Exception):
    """远程获取错误异常。"""
    pass


class NetworkError(RemoteFetcherError):
    """网络错误异常。"""
    pass


class EmptyIndexError(RemoteFetcherError):
    """版本索引为空异常。"""
    pass


def parse_index_line(line: str) -> Optional[Dict[str, Any]]:
    """
    解析 index.tab 的一行。

    以空白分隔，只取版本号、日期和 LTS 代号列，其余列忽略。

    参数:
        line: 一行文本

    返回:
        版本信息字典，无法解析返回 None
    """
    columns = line.split()
    if not columns:
        return None
    version = version_utils.normalize_version(columns[VERSION_COLUMN])
    if not version or version.count(".") != 2:
        return None
    release_date = columns[DATE_COLUMN] if len(columns) > DATE_COLUMN else None
    lts = None
    if len(columns) > LTS_COLUMN and columns[LTS_COLUMN] != "-":
        lts = columns[LTS_COLUMN]
    return {
        "version": version,
        "release_date": release_date,
        "lts": lts,
    }


def parse_index(text: str) -> List[Dict[str, Any]]:
    """
    解析 index.tab 内容为版本信息列表。

    跳过表头和无法解析的行，去重后按版本号降序排列。

    参数:
        text: index.tab 的完整内容

    返回:
        版本信息列表
    """
    releases: Dict[str, Dict[str, Any]] = {}
    for line in text.splitlines():
        info = parse_index_line(line)
        if info is None:
            if line.strip():
                logger.debug(f"跳过无法解析的索引行: {line[:60]!r}")
            continue
        releases.setdefault(info["version"], info)
    ordered = version_utils.sort_versions_desc(releases)
    return [releases[v] for v in ordered]


class RemoteFetcher(IRemoteFetcher):
    """
    远程版本获取器类。

    负责从下载源获取可用版本列表。
    实现 IRemoteFetcher 抽象接口。
    """

    def __init__(self, config_manager: ConfigManager, session: Optional[requests.Session] = None):
        """
        初始化远程版本获取器。

        参数:
            config_manager: 配置管理器实例
            session: 可选的 requests 会话
        """
        self.config_manager = config_manager
        self.session = session or requests.Session()

    def _fetch_index_text(self) -> str:
        """
        请求 index.tab 原始内容。

        返回:
            响应文本

        抛出:
            NetworkError: 网络请求失败或返回非 2xx 状态码
        """
        index_url = self.config_manager.get_index_url()
        timeout = self.config_manager.get_request_timeout()
        logger.info(f"获取版本索引: {index_url}")
        try:
            response = self.session.get(index_url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"获取版本索引失败: {e}")
            raise NetworkError(f"无法获取版本索引 {index_url}: {e}") from e
        return response.text

    def fetch_releases(self) -> List[Dict[str, Any]]:
        """
        获取远程可用版本的详细信息。

        返回:
            版本信息列表（version、release_date、lts），按版本号降序

        抛出:
            NetworkError: 网络请求失败
            EmptyIndexError: 索引中没有可解析的版本
        """
        releases = parse_index(self._fetch_index_text())
        if not releases:
            logger.error("版本索引中没有可解析的版本")
            raise EmptyIndexError("远程版本索引为空")
        logger.info(f"获取到 {len(releases)} 个远程版本")
        return releases

    def fetch_index(self) -> List[str]:
        """
        获取远程可用版本号列表。

        返回:
            版本号列表，按版本号降序
        """
        return [release["version"] for release in self.fetch_releases()]
