"""
本地版本管理模块。

管理 versions/ 目录下已安装的 Node.js 版本：安装、删除和列出。
"""

import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Optional, List, Dict, Any, Callable

from nds.utils.logger import get_logger
from nds.core.config_manager import ConfigManager
from nds.core.interfaces import ILocalManager, IDownloadManager
from nds.core import version_utils
from nds.utils.input_validator import InputValidator, InputValidationError
from nds.utils.prompt import confirm as default_confirm

logger = get_logger()

NODE_VERSION_PATTERN = re.compile(r"v?(\d+\.\d+\.\d+)")


class LocalManagerError(Exception):
    """本地管理错误异常。"""
    pass


class NotInstalledError(LocalManagerError):
    """版本未安装错误异常。"""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Node.js {version} 未安装")


class RemovalAbortedError(LocalManagerError):
    """用户取消删除异常。"""
    pass


class RemovalError(LocalManagerError):
    """删除版本目录失败异常。"""
    pass


def probe_node_version() -> Optional[str]:
    """
    执行 node --version 获取当前 shell 正在使用的版本。

    返回:
        版本号，node 不可用或输出无法解析时返回 None
    """
    try:
        result = subprocess.run(
            ["node", "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except FileNotFoundError:
        logger.debug("未找到 node 可执行文件")
        return None
    except subprocess.TimeoutExpired:
        logger.warning("获取 node 版本超时 (10秒)")
        return None
    except OSError as e:
        logger.warning(f"执行 node --version 失败: {e}")
        return None

    match = NODE_VERSION_PATTERN.search(result.stdout)
    if not match:
        logger.debug(f"无法从输出中解析 node 版本: {result.stdout!r}")
        return None
    return match.group(1)


class LocalManager(ILocalManager):
    """
    本地版本管理器类。

    versions/{version}/ 目录只由本类创建和删除。
    实现 ILocalManager 抽象接口。
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        download_manager: IDownloadManager,
        version_probe: Callable[[], Optional[str]] = probe_node_version,
        default_probe: Optional[Callable[[], Optional[str]]] = None,
    ):
        """
        初始化本地版本管理器。

        参数:
            config_manager: 配置管理器实例
            download_manager: 下载管理器实例
            version_probe: 获取当前 shell 正在使用版本的函数
            default_probe: 获取默认版本的函数
        """
        self.config_manager = config_manager
        self.download_manager = download_manager
        self.version_probe = version_probe
        self.default_probe = default_probe or (lambda: None)

    @property
    def versions_dir(self) -> Path:
        return self.config_manager.versions_dir

    def get_version_dir(self, version: str) -> Path:
        """
        获取版本安装目录。

        参数:
            version: 完整版本号

        返回:
            versions/{version}

        抛出:
            InputValidationError: 版本号不是 MAJOR.MINOR.PATCH
        """
        InputValidator.validate_version_id(version)
        return Path(InputValidator.safe_join_path(str(self.versions_dir), version))

    def installed_versions(self) -> List[str]:
        """
        扫描已安装的版本。

        只统计名称为完整版本号的目录，安装中的临时目录和其他文件被忽略。

        返回:
            版本号列表，按版本号升序
        """
        if not self.versions_dir.is_dir():
            return []
        versions = []
        for entry in os.scandir(self.versions_dir):
            if not entry.is_dir(follow_symlinks=False):
                continue
            try:
                InputValidator.validate_version_id(entry.name)
            except InputValidationError:
                logger.debug(f"忽略非版本目录: {entry.name}")
                continue
            versions.append(entry.name)
        return version_utils.sort_versions_asc(versions)

    def is_installed(self, version: str) -> bool:
        """检查指定版本是否已安装。"""
        try:
            return self.get_version_dir(version).is_dir()
        except InputValidationError:
            return False

    def install(
        self,
        version: str,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        status_callback: Optional[Callable[[str], None]] = None,
    ) -> Path:
        """
        安装指定版本。

        目录已存在视为已安装。否则原子地创建版本目录，下载并解压；
        任何失败都会删除整个版本目录，不留下半安装状态。

        参数:
            version: 完整版本号
            progress_callback: 下载进度回调函数
            status_callback: 状态消息回调函数

        返回:
            版本安装目录

        抛出:
            DownloadError: 下载失败
            ExtractionError: 解压失败
        """
        version_dir = self.get_version_dir(version)
        self.versions_dir.mkdir(parents=True, exist_ok=True)
        try:
            os.mkdir(version_dir)
        except FileExistsError:
            logger.info(f"Node.js {version} 已安装: {version_dir}")
            return version_dir

        logger.info(f"正在安装 Node.js {version} 到 {version_dir}")
        try:
            self.download_manager.download_and_extract(
                version, version_dir, progress_callback, status_callback
            )
        except BaseException:
            logger.error(f"安装 Node.js {version} 失败，正在回滚")
            shutil.rmtree(version_dir, ignore_errors=True)
            raise
        logger.info(f"成功安装 Node.js {version}")
        return version_dir

    def remove(
        self,
        version: str,
        require_confirmation: bool = True,
        confirm: Callable[[str], bool] = default_confirm,
    ) -> None:
        """
        删除指定版本。

        参数:
            version: 完整版本号
            require_confirmation: 是否需要用户确认
            confirm: 确认函数，返回 True 才会删除

        抛出:
            NotInstalledError: 版本未安装
            RemovalAbortedError: 用户取消
            RemovalError: 删除目录失败
        """
        if not self.is_installed(version):
            raise NotInstalledError(version)
        version_dir = self.get_version_dir(version)

        if require_confirmation and not confirm(f"确定要删除 Node.js {version} 吗？"):
            logger.info(f"用户取消删除 Node.js {version}")
            raise RemovalAbortedError(f"已取消删除 Node.js {version}")

        if self.default_probe() == version:
            logger.warning(f"Node.js {version} 是默认版本，删除后 default 链接将失效")

        try:
            shutil.rmtree(version_dir)
        except OSError as e:
            logger.error(f"删除 {version_dir} 失败: {e}")
            raise RemovalError(f"无法删除 Node.js {version}: {e}") from e
        logger.info(f"已删除 {version_dir}")

    def list_installed(self) -> List[Dict[str, Any]]:
        """
        列出已安装版本。

        返回:
            版本信息列表（version、path、is_default、is_current），按版本号升序
        """
        versions = self.installed_versions()
        if not versions:
            return []
        default_version = self.default_probe()
        current_version = self.version_probe()
        return [
            {
                "version": v,
                "path": str(self.versions_dir / v),
                "is_default": v == default_version,
                "is_current": v == current_version,
            }
            for v in versions
        ]
