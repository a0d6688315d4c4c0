"""
自动切换模块。

由 shell 提示符钩子在每次显示提示符时调用：读取当前目录的版本标记文件，
必要时安装对应版本，并计算新的 PATH。
"""

from pathlib import Path
from typing import Callable, NamedTuple, Optional

from nds.utils.logger import get_logger
from nds.core.config_manager import ConfigManager
from nds.core.env_manager import EnvManager
from nds.core.local_manager import LocalManager
from nds.core.version_resolver import VersionResolver, VersionNotFoundError

logger = get_logger()

# 两个文件同时存在时 .nds 优先
MARKER_FILES = (".nds", ".nvmrc")


class AutoSwitchResult(NamedTuple):
    """一次自动切换的结果。"""

    version: str
    marker: Path
    new_path: str
    installed: bool


def find_marker(directory: Path) -> Optional[Path]:
    """
    查找目录中的版本标记文件。

    参数:
        directory: 目录

    返回:
        标记文件路径，不存在返回 None
    """
    for name in MARKER_FILES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def read_marker(marker: Path) -> Optional[str]:
    """
    读取标记文件中的版本标记（去除所有空白）。

    参数:
        marker: 标记文件路径

    返回:
        版本标记，文件为空返回 None
    """
    token = "".join(marker.read_text(encoding="utf-8").split())
    return token or None


class AutoSwitcher:
    """
    自动切换器类。

    开关关闭或没有标记文件时直接返回，不访问网络；
    只有标记的版本未安装时才会请求远程索引并安装。
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        resolver: VersionResolver,
        local_manager: LocalManager,
        env_manager: EnvManager,
    ):
        self.config_manager = config_manager
        self.resolver = resolver
        self.local_manager = local_manager
        self.env_manager = env_manager

    def run(
        self,
        cwd: Path,
        current_path: str,
        status_callback: Optional[Callable[[str], None]] = None,
    ) -> Optional[AutoSwitchResult]:
        """
        执行一次自动切换。

        参数:
            cwd: 当前工作目录
            current_path: 当前 PATH
            status_callback: 状态消息回调函数

        返回:
            发生切换时返回 AutoSwitchResult，否则返回 None

        抛出:
            VersionNotFoundError / NetworkError / DownloadError / ExtractionError:
                标记的版本无法解析或安装
        """
        if not self.config_manager.is_auto_switch_enabled():
            return None

        marker = find_marker(Path(cwd))
        if marker is None:
            return None

        token = read_marker(marker)
        if token is None:
            logger.debug(f"标记文件为空: {marker}")
            return None

        installed = False
        try:
            version = self.resolver.resolve_local(token, self.local_manager.installed_versions())
        except VersionNotFoundError:
            version = self.resolver.resolve_remote(token)
            if status_callback:
                status_callback(f"[nds] 正在根据 {marker.name} 安装 Node.js {version}")
            self.local_manager.install(version)
            installed = True

        if self.env_manager.active_version_from_path(current_path) == version:
            logger.debug(f"Node.js {version} 已生效，无需切换")
            return None

        new_path = self.env_manager.compute_path(version, current_path)
        logger.info(f"根据 {marker} 切换到 Node.js {version}")
        return AutoSwitchResult(version=version, marker=marker, new_path=new_path, installed=installed)
