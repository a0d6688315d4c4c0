"""
环境切换模块。

计算切换版本后的 PATH，并维护 default 符号链接。
本模块不修改任何进程的环境变量，只输出由 shell 包装函数执行的结果。
"""

import os
import shlex
from pathlib import Path
from typing import Optional, List

from nds.utils.logger import get_logger
from nds.core.config_manager import ConfigManager
from nds.core.interfaces import IEnvManager

logger = get_logger()


class EnvManagerError(Exception):
    """环境切换错误异常。"""
    pass


class DefaultLinkError(EnvManagerError):
    """default 链接更新失败异常。"""
    pass


def format_export(name: str, value: str) -> str:
    """
    生成可被 shell eval 的 export 语句。

    参数:
        name: 变量名
        value: 变量值

    返回:
        export 语句
    """
    return f"export {name}={shlex.quote(value)}"


class EnvManager(IEnvManager):
    """
    环境切换器类。

    PATH 以字符串形式传入和返回，compute_path 是纯函数。
    实现 IEnvManager 抽象接口。
    """

    def __init__(self, config_manager: ConfigManager):
        """
        初始化环境切换器。

        参数:
            config_manager: 配置管理器实例
        """
        self.config_manager = config_manager

    @property
    def versions_dir(self) -> Path:
        return self.config_manager.versions_dir

    def version_dir(self, version: str) -> Path:
        """获取版本安装目录。"""
        return self.versions_dir / version

    def bin_dir(self, version: str) -> Path:
        """
        获取指定版本的 bin 目录。

        参数:
            version: 版本号

        返回:
            versions/{version}/bin
        """
        return self.version_dir(version) / "bin"

    def managed_version(self, entry: str) -> Optional[str]:
        """
        判断 PATH 条目是否由本工具添加。

        本工具添加的条目形如 {versions_dir}/{version}/bin。

        参数:
            entry: PATH 条目

        返回:
            条目对应的版本号，不是本工具添加的条目返回 None
        """
        if not entry:
            return None
        path = Path(os.path.normpath(entry))
        if path.name != "bin" or path.parent.parent != Path(os.path.normpath(self.versions_dir)):
            return None
        return path.parent.name

    def split_path(self, current_path: str) -> List[str]:
        """拆分 PATH 字符串，空 PATH 返回空列表。"""
        if not current_path:
            return []
        return current_path.split(os.pathsep)

    def strip_managed_entries(self, current_path: str) -> List[str]:
        """
        移除 PATH 中所有由本工具添加的条目。

        参数:
            current_path: 当前 PATH

        返回:
            剩余条目列表
        """
        return [e for e in self.split_path(current_path) if self.managed_version(e) is None]

    def compute_path(self, version: str, current_path: str) -> str:
        """
        计算切换到指定版本后的 PATH。

        先移除所有旧的版本条目，再把新版本的 bin 目录放到最前面，
        因此对同一版本重复执行得到相同的结果。

        参数:
            version: 版本号
            current_path: 当前 PATH

        返回:
            新的 PATH
        """
        entries = [str(self.bin_dir(version))] + self.strip_managed_entries(current_path)
        return os.pathsep.join(entries)

    def active_version_from_path(self, current_path: str) -> Optional[str]:
        """
        从 PATH 中找出当前生效的版本。

        参数:
            current_path: 当前 PATH

        返回:
            PATH 中第一个版本条目对应的版本号，没有则返回 None
        """
        for entry in self.split_path(current_path):
            version = self.managed_version(entry)
            if version is not None:
                return version
        return None

    def get_default_version(self) -> Optional[str]:
        """
        获取默认版本。

        返回:
            default 链接指向的版本号，链接不存在返回 None
        """
        link = self.config_manager.default_link
        if not link.is_symlink():
            return None
        return Path(os.readlink(link)).name

    def set_default(self, version: str) -> Path:
        """
        将 default 链接原子地指向指定版本。

        先在同一目录创建临时链接，确认其指向有效后再用 os.replace 覆盖旧链接。
        任何一步失败都会删除临时链接，旧链接保持不变。

        参数:
            version: 版本号

        返回:
            链接指向的版本目录

        抛出:
            DefaultLinkError: 版本目录不存在或链接更新失败
        """
        target = self.version_dir(version)
        link = self.config_manager.default_link
        if not target.is_dir():
            raise DefaultLinkError(f"版本目录不存在: {target}")

        temp_link = link.with_name(f".{link.name}.tmp-{os.getpid()}")
        try:
            if temp_link.is_symlink() or temp_link.exists():
                temp_link.unlink()
            os.symlink(target, temp_link, target_is_directory=True)
            if not temp_link.is_dir():
                raise DefaultLinkError(f"版本目录在更新过程中被删除: {target}")
            os.replace(temp_link, link)
        except DefaultLinkError:
            temp_link.unlink(missing_ok=True)
            raise
        except OSError as e:
            temp_link.unlink(missing_ok=True)
            logger.error(f"更新 default 链接失败: {e}")
            raise DefaultLinkError(f"无法更新 default 链接: {e}") from e

        logger.info(f"default 链接已指向 {target}")
        return target
