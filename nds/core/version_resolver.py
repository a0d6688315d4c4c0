"""
版本解析模块。

将用户输入的版本标记（latest、主版本号、版本前缀或完整版本号）解析为具体版本号。
"""

from typing import Iterable, List, Optional

from nds.utils.logger import get_logger
from nds.core.interfaces import IRemoteFetcher
from nds.core import version_utils
from nds.utils.input_validator import InputValidator

logger = get_logger()

LATEST = "latest"
SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"


class VersionResolverError(Exception):
    """版本解析错误异常。"""
    pass


class VersionNotFoundError(VersionResolverError):
    """版本未找到错误异常。"""

    def __init__(self, token: str, source: str):
        self.token = token
        self.source = source
        where = "远程版本索引" if source == SOURCE_REMOTE else "已安装版本"
        super().__init__(f"在{where}中找不到与 '{token}' 匹配的版本")


class ResolveContext:
    """
    版本解析上下文。

    remote 上下文用于安装，从远程索引中查找；
    local 上下文用于 use/set/remove，从已安装版本中查找。
    """

    def __init__(self, source: str, installed: Optional[Iterable[str]] = None):
        if source not in (SOURCE_REMOTE, SOURCE_LOCAL):
            raise ValueError(f"未知的解析来源: {source}")
        self.source = source
        self.installed = list(installed or [])

    @classmethod
    def remote(cls) -> "ResolveContext":
        return cls(SOURCE_REMOTE)

    @classmethod
    def local(cls, installed: Iterable[str]) -> "ResolveContext":
        return cls(SOURCE_LOCAL, installed)

    def __repr__(self) -> str:
        if self.source == SOURCE_LOCAL:
            return f"ResolveContext(local, installed={self.installed!r})"
        return "ResolveContext(remote)"


def is_major_token(token: str) -> bool:
    """判断标记是否为纯数字主版本号。"""
    return token.isdigit()


def normalize_token(token: str) -> str:
    """
    验证并规范化版本标记。

    参数:
        token: 用户输入

    返回:
        去除空白和前导 v 后的标记

    抛出:
        InputValidationError: 标记为空或格式无效
    """
    token = InputValidator.sanitize_version_token(token)
    InputValidator.validate_version_token(token)
    if token == LATEST:
        return token
    return version_utils.normalize_version(token)


class VersionResolver:
    """
    版本解析器类。

    规则按优先级：
    1. latest：远程取索引第一项，本地取最高已安装版本；
    2. 纯数字 M：取主版本号为 M 的最高版本；
    3. 其他：远程要求精确匹配，本地取前缀匹配的最高版本。
    """

    def __init__(self, remote_fetcher: IRemoteFetcher):
        """
        初始化版本解析器。

        参数:
            remote_fetcher: 远程版本获取器，仅在 remote 上下文中使用
        """
        self.remote_fetcher = remote_fetcher

    def resolve(self, token: str, context: ResolveContext) -> str:
        """
        解析版本标记。

        参数:
            token: 版本标记
            context: 解析上下文

        返回:
            具体版本号

        抛出:
            InputValidationError: 标记格式无效
            VersionNotFoundError: 找不到匹配的版本
            NetworkError / EmptyIndexError: remote 上下文中获取索引失败
        """
        normalized = normalize_token(token)
        if context.source == SOURCE_REMOTE:
            version = self._resolve_remote(normalized)
        else:
            version = self._resolve_local(normalized, context.installed)
        if version is None:
            logger.info(f"版本解析失败: {token!r} ({context.source})")
            raise VersionNotFoundError(token.strip(), context.source)
        logger.debug(f"版本解析: {token!r} -> {version} ({context.source})")
        return version

    def resolve_remote(self, token: str) -> str:
        """在远程索引中解析版本标记。"""
        return self.resolve(token, ResolveContext.remote())

    def resolve_local(self, token: str, installed: Iterable[str]) -> str:
        """在已安装版本中解析版本标记。"""
        return self.resolve(token, ResolveContext.local(installed))

    def _resolve_remote(self, token: str) -> Optional[str]:
        available = self.remote_fetcher.fetch_index()
        if token == LATEST:
            return available[0] if available else None
        if is_major_token(token):
            major = int(token)
            return next((v for v in available if version_utils.get_major(v) == major), None)
        return token if token in available else None

    def _resolve_local(self, token: str, installed: List[str]) -> Optional[str]:
        candidates = version_utils.sort_versions_desc(installed)
        if token == LATEST:
            return candidates[0] if candidates else None
        if is_major_token(token):
            major = int(token)
            return next((v for v in candidates if version_utils.get_major(v) == major), None)
        return next((v for v in candidates if v.startswith(token)), None)
