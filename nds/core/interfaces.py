"""
核心模块抽象接口定义。

定义 ConfigManager、RemoteFetcher、DownloadManager、LocalManager、EnvManager 的抽象接口。
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List, Dict, Any, Callable

from nds.core.version_utils import top_major_versions


class IConfigManager(ABC):
    """配置管理器抽象接口。"""

    @abstractmethod
    def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """获取配置值。"""
        pass

    @abstractmethod
    def set_value(self, key: str, value: str) -> None:
        """设置配置值并保存。"""
        pass

    @abstractmethod
    def is_auto_switch_enabled(self) -> bool:
        """自动切换是否开启。"""
        pass

    @abstractmethod
    def set_auto_switch(self, enabled: bool) -> None:
        """设置自动切换开关。"""
        pass

    @abstractmethod
    def get_mirror_url(self) -> str:
        """获取下载源根地址。"""
        pass

    @abstractmethod
    def get_index_url(self) -> str:
        """获取版本索引地址。"""
        pass

    @abstractmethod
    def get_archive_ext(self) -> str:
        """获取安装包扩展名。"""
        pass

    @abstractmethod
    def get_request_timeout(self) -> float:
        """获取网络请求超时时间（秒）。"""
        pass


class IRemoteFetcher(ABC):
    """远程版本获取器抽象接口。"""

    @abstractmethod
    def fetch_index(self) -> List[str]:
        """获取远程版本列表，按版本号降序。"""
        pass

    @abstractmethod
    def fetch_releases(self) -> List[Dict[str, Any]]:
        """获取远程版本详细信息列表，按版本号降序。"""
        pass

    def fetch_top_majors(self, n: int = 5) -> List[str]:
        """获取最新 n 个主版本号下的版本列表。"""
        return top_major_versions(self.fetch_index(), n)


class IDownloadManager(ABC):
    """下载管理器抽象接口。"""

    @abstractmethod
    def build_download_url(self, version: str) -> str:
        """构建指定版本的下载地址。"""
        pass

    @abstractmethod
    def download_and_extract(
        self,
        version: str,
        target_dir: Path,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        status_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        """下载指定版本并解压到目标目录。"""
        pass


class ILocalManager(ABC):
    """本地版本管理器抽象接口。"""

    @abstractmethod
    def installed_versions(self) -> List[str]:
        """获取已安装的版本号列表，按版本号升序。"""
        pass

    @abstractmethod
    def is_installed(self, version: str) -> bool:
        """检查指定版本是否已安装。"""
        pass

    @abstractmethod
    def install(
        self,
        version: str,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        status_callback: Optional[Callable[[str], None]] = None,
    ) -> Path:
        """安装指定版本。"""
        pass

    @abstractmethod
    def remove(self, version: str, require_confirmation: bool = True) -> None:
        """删除指定版本。"""
        pass

    @abstractmethod
    def list_installed(self) -> List[Dict[str, Any]]:
        """列出已安装版本及其标记。"""
        pass


class IEnvManager(ABC):
    """环境切换器抽象接口。"""

    @abstractmethod
    def bin_dir(self, version: str) -> Path:
        """获取指定版本的 bin 目录。"""
        pass

    @abstractmethod
    def compute_path(self, version: str, current_path: str) -> str:
        """计算切换到指定版本后的 PATH。"""
        pass

    @abstractmethod
    def set_default(self, version: str) -> Path:
        """将默认版本链接指向指定版本。"""
        pass

    @abstractmethod
    def get_default_version(self) -> Optional[str]:
        """获取默认版本。"""
        pass
