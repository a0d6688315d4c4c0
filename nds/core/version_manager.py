"""
版本管理器模块。

协调版本解析、安装、切换、删除和自动切换，是命令行层唯一直接使用的核心对象。
"""

from pathlib import Path
from typing import Optional, List, Dict, Any, Callable, Tuple

from nds.utils.logger import get_logger
from nds.core.config_manager import ConfigManager
from nds.core.remote_fetcher import RemoteFetcher
from nds.core.download_manager import DownloadManager
from nds.core.local_manager import LocalManager, NotInstalledError
from nds.core.env_manager import EnvManager
from nds.core.version_resolver import VersionResolver, VersionNotFoundError
from nds.core.auto_switch import AutoSwitcher, AutoSwitchResult
from nds.core.shell_integration import ShellIntegration
from nds.core.interfaces import IRemoteFetcher, IDownloadManager
from nds.core import version_utils
from nds.utils.prompt import confirm as default_confirm

logger = get_logger()


class VersionManager:
    """
    版本管理器类。

    本类作为协调者，将具体工作委托给各个专用模块。
    所有协作者都可以通过构造参数替换，便于测试。
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        remote_fetcher: Optional[IRemoteFetcher] = None,
        download_manager: Optional[IDownloadManager] = None,
        version_probe: Optional[Callable[[], Optional[str]]] = None,
        shell_integration: Optional[ShellIntegration] = None,
    ):
        """
        初始化版本管理器。

        参数:
            config_manager: 配置管理器实例
            remote_fetcher: 远程版本获取器
            download_manager: 下载管理器
            version_probe: 获取当前 shell 正在使用版本的函数
            shell_integration: Shell 集成
        """
        self.config_manager = config_manager or ConfigManager()
        self.remote_fetcher = remote_fetcher or RemoteFetcher(self.config_manager)
        self.download_manager = download_manager or DownloadManager(self.config_manager)
        self.env_manager = EnvManager(self.config_manager)

        local_kwargs = {"default_probe": self.env_manager.get_default_version}
        if version_probe is not None:
            local_kwargs["version_probe"] = version_probe
        self.local_manager = LocalManager(self.config_manager, self.download_manager, **local_kwargs)

        self.resolver = VersionResolver(self.remote_fetcher)
        self.auto_switcher = AutoSwitcher(
            self.config_manager, self.resolver, self.local_manager, self.env_manager
        )
        self.shell_integration = shell_integration or ShellIntegration()

    def get_available_versions(self, top_majors: Optional[int] = 5) -> List[Dict[str, Any]]:
        """
        获取远程可用版本。

        参数:
            top_majors: 只保留最新的 n 个主版本，None 表示全部

        返回:
            版本信息列表，按版本号降序
        """
        releases = self.remote_fetcher.fetch_releases()
        if top_majors is None:
            return releases
        keep = set(version_utils.top_major_versions([r["version"] for r in releases], top_majors))
        return [r for r in releases if r["version"] in keep]

    def install(
        self,
        token: str,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        status_callback: Optional[Callable[[str], None]] = None,
    ) -> Tuple[str, bool]:
        """
        解析版本标记并安装。

        参数:
            token: 版本标记
            progress_callback: 下载进度回调函数
            status_callback: 状态消息回调函数

        返回:
            (版本号, 是否本次新安装)
        """
        version = self.resolver.resolve_remote(token)
        if self.local_manager.is_installed(version):
            logger.info(f"Node.js {version} 已安装")
            return version, False
        self.local_manager.install(version, progress_callback, status_callback)
        return version, True

    def _resolve_installed(self, token: str) -> str:
        try:
            return self.resolver.resolve_local(token, self.local_manager.installed_versions())
        except VersionNotFoundError as e:
            raise NotInstalledError(token.strip()) from e

    def use(self, token: str) -> str:
        """
        解析要在当前 shell 使用的已安装版本。

        参数:
            token: 版本标记

        返回:
            版本号

        抛出:
            NotInstalledError: 没有匹配的已安装版本
        """
        version = self._resolve_installed(token)
        logger.info(f"使用 Node.js {version}")
        return version

    def set_default(self, token: str) -> str:
        """
        将默认版本设置为匹配的已安装版本。

        参数:
            token: 版本标记

        返回:
            版本号

        抛出:
            NotInstalledError: 没有匹配的已安装版本
            DefaultLinkError: 链接更新失败
        """
        version = self._resolve_installed(token)
        self.env_manager.set_default(version)
        return version

    def remove(
        self,
        token: str,
        require_confirmation: bool = True,
        confirm: Callable[[str], bool] = default_confirm,
    ) -> str:
        """
        删除匹配的已安装版本。

        参数:
            token: 版本标记
            require_confirmation: 是否需要用户确认
            confirm: 确认函数

        返回:
            被删除的版本号

        抛出:
            NotInstalledError: 没有匹配的已安装版本
            RemovalAbortedError: 用户取消
        """
        version = self._resolve_installed(token)
        self.local_manager.remove(version, require_confirmation, confirm)
        return version

    def list_installed(self) -> List[Dict[str, Any]]:
        """列出已安装版本及 default/current 标记。"""
        return self.local_manager.list_installed()

    def bin_dir(self, version: str) -> Path:
        """获取版本的 bin 目录。"""
        return self.env_manager.bin_dir(version)

    def compute_path(self, version: str, current_path: str) -> str:
        """计算切换到指定版本后的 PATH。"""
        return self.env_manager.compute_path(version, current_path)

    def auto_switch(
        self,
        cwd: Path,
        current_path: str,
        status_callback: Optional[Callable[[str], None]] = None,
    ) -> Optional[AutoSwitchResult]:
        """根据当前目录的标记文件执行一次自动切换。"""
        return self.auto_switcher.run(cwd, current_path, status_callback)

    def enable_auto_switch(self) -> List[Path]:
        """
        开启自动切换：写入配置并安装 shell 钩子。

        返回:
            被修改的 shell 配置文件列表
        """
        self.config_manager.set_auto_switch(True)
        return self.shell_integration.install_auto_switch_hook()

    def disable_auto_switch(self) -> List[Path]:
        """
        关闭自动切换：写入配置并移除 shell 钩子。

        返回:
            被修改的 shell 配置文件列表
        """
        self.config_manager.set_auto_switch(False)
        return self.shell_integration.remove_auto_switch_hook()

    def init_shell(self) -> List[Path]:
        """写入 shell 初始化代码，返回被修改的文件列表。"""
        return self.shell_integration.install_init()
