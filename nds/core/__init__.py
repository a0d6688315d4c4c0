"""
nds 核心模块。

提供版本索引获取、版本解析、安装管理、环境切换和自动切换功能。
"""

from .interfaces import IConfigManager, IRemoteFetcher, IDownloadManager, ILocalManager, IEnvManager
from .config_manager import ConfigManager, ConfigValidationError, ConfigSaveError
from .platform_info import PlatformInfo, UnsupportedPlatformError, get_platform
from .remote_fetcher import RemoteFetcher, RemoteFetcherError, NetworkError, EmptyIndexError
from .download_manager import DownloadManager, DownloadManagerError, DownloadError, ExtractionError
from .version_resolver import VersionResolver, ResolveContext, VersionResolverError, VersionNotFoundError
from .local_manager import LocalManager, LocalManagerError, NotInstalledError, RemovalAbortedError, RemovalError
from .env_manager import EnvManager, EnvManagerError, DefaultLinkError
from .auto_switch import AutoSwitcher, AutoSwitchResult
from .shell_integration import ShellIntegration, ShellIntegrationError
from .version_manager import VersionManager
from . import version_utils

__all__ = [
    "IConfigManager", "IRemoteFetcher", "IDownloadManager", "ILocalManager", "IEnvManager",
    "ConfigManager", "ConfigValidationError", "ConfigSaveError",
    "PlatformInfo", "UnsupportedPlatformError", "get_platform",
    "RemoteFetcher", "RemoteFetcherError", "NetworkError", "EmptyIndexError",
    "DownloadManager", "DownloadManagerError", "DownloadError", "ExtractionError",
    "VersionResolver", "ResolveContext", "VersionResolverError", "VersionNotFoundError",
    "LocalManager", "LocalManagerError", "NotInstalledError", "RemovalAbortedError", "RemovalError",
    "EnvManager", "EnvManagerError", "DefaultLinkError",
    "AutoSwitcher", "AutoSwitchResult",
    "ShellIntegration", "ShellIntegrationError",
    "VersionManager",
    "version_utils",
]
