"""
下载管理模块。

提供 Node.js 安装包的下载和解压功能。
"""

import os
import tarfile
import tempfile
import zlib
from pathlib import Path
from typing import Optional, List, Callable

import requests

from nds.utils.logger import get_logger
from nds.core.config_manager import ConfigManager
from nds.core.interfaces import IDownloadManager
from nds.core.platform_info import PlatformInfo, get_platform
from nds.utils.input_validator import InputValidator, InputValidationError

logger = get_logger()

SOFTWARE_NAME = "node"
CHUNK_SIZE = 64 * 1024


class DownloadManagerError(Exception):
    """下载管理错误异常。"""
    pass


class DownloadError(DownloadManagerError):
    """下载错误异常。"""
    pass


class ExtractionError(DownloadManagerError):
    """解压错误异常。"""
    pass


def build_download_url(mirror_url: str, version: str, os_name: str, arch: str, archive_ext: str) -> str:
    """
    根据下载源、版本号和平台构建下载 URL。

    格式: {mirror}/v{version}/node-v{version}-{os}-{arch}.{ext}

    参数:
        mirror_url: 下载源根地址
        version: 版本号
        os_name: 操作系统标识（linux、darwin）
        arch: 架构标识（x64、arm64）
        archive_ext: 安装包扩展名

    返回:
        下载 URL
    """
    return (
        f"{mirror_url.rstrip('/')}/v{version}/"
        f"{SOFTWARE_NAME}-v{version}-{os_name}-{arch}.{archive_ext}"
    )


def _strip_first_component(name: str) -> Optional[str]:
    """
    去掉归档成员路径的第一层目录。

    参数:
        name: 成员路径

    返回:
        去掉顶层目录后的路径，顶层目录本身返回 None
    """
    while name.startswith("./"):
        name = name[2:]
    parts = name.split("/", 1)
    if len(parts) < 2 or not parts[1].strip("/"):
        return None
    return parts[1]


def _stripped_members(tar: tarfile.TarFile, target_dir: str) -> List[tarfile.TarInfo]:
    """
    生成去掉顶层目录后的成员列表，并拒绝路径遍历。

    参数:
        tar: 已打开的归档
        target_dir: 解压目标目录

    返回:
        改写后的成员列表

    抛出:
        ExtractionError: 成员路径非法
    """
    members = []
    for member in tar.getmembers():
        stripped = _strip_first_component(member.name)
        if stripped is None:
            continue
        if stripped.startswith("/"):
            raise ExtractionError(f"压缩包包含非法路径: {member.name}")
        try:
            InputValidator.safe_join_path(target_dir, stripped)
        except InputValidationError as e:
            raise ExtractionError(f"压缩包包含非法路径: {member.name}") from e
        if member.islnk():
            link_target = _strip_first_component(member.linkname)
            if link_target is None:
                raise ExtractionError(f"压缩包包含非法硬链接: {member.name}")
            member.linkname = link_target
        elif not (member.isfile() or member.isdir() or member.issym()):
            logger.debug(f"跳过特殊文件: {member.name}")
            continue
        member.name = stripped
        members.append(member)
    return members


def extract_archive(archive_path: Path, target_dir: Path) -> None:
    """
    解压安装包到目标目录，去掉顶层目录（相当于 tar --strip-components=1）。

    参数:
        archive_path: 压缩包路径
        target_dir: 目标目录（必须已存在）

    抛出:
        ExtractionError: 压缩包损坏、路径非法或写入失败
    """
    try:
        with tarfile.open(archive_path, "r:*") as tar:
            members = _stripped_members(tar, str(target_dir))
            if not members:
                raise ExtractionError(f"压缩包为空: {archive_path}")
            tar.extractall(target_dir, members=members, filter="data")
    except ExtractionError:
        raise
    except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
        raise ExtractionError(f"解压 {archive_path} 失败: {e}") from e


class DownloadManager(IDownloadManager):
    """
    下载管理器类。

    负责安装包的下载和解压，不做重试：第一次网络错误即失败。
    实现 IDownloadManager 抽象接口。
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        session: Optional[requests.Session] = None,
        platform_info: Optional[PlatformInfo] = None,
    ):
        """
        初始化下载管理器。

        参数:
            config_manager: 配置管理器实例
            session: 可选的 requests 会话
            platform_info: 目标平台，默认检测当前平台
        """
        self.config_manager = config_manager
        self.session = session or requests.Session()
        self._platform_info = platform_info

    @property
    def platform_info(self) -> PlatformInfo:
        """目标平台信息，首次访问时检测。"""
        if self._platform_info is None:
            self._platform_info = get_platform()
        return self._platform_info

    def build_download_url(self, version: str) -> str:
        """
        构建指定版本的下载地址。

        参数:
            version: 版本号

        返回:
            下载 URL
        """
        info = self.platform_info
        return build_download_url(
            self.config_manager.get_mirror_url(),
            version,
            info.os,
            info.arch,
            self.config_manager.get_archive_ext(),
        )

    def download_file(
        self,
        download_url: str,
        dest_path: Path,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> None:
        """
        流式下载文件。

        参数:
            download_url: 下载 URL
            dest_path: 保存路径
            progress_callback: 下载进度回调函数 (已下载字节, 总字节)

        抛出:
            DownloadError: 网络错误、非 2xx 响应或写入失败
        """
        timeout = self.config_manager.get_request_timeout()
        logger.info(f"正在下载 {download_url}")
        try:
            with self.session.get(download_url, stream=True, timeout=timeout) as response:
                response.raise_for_status()
                total_size = int(response.headers.get("content-length", 0))
                downloaded = 0
                with open(dest_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if not chunk:
                            continue
                        f.write(chunk)
                        downloaded += len(chunk)
                        if progress_callback:
                            progress_callback(downloaded, total_size)
        except requests.RequestException as e:
            logger.error(f"下载失败: {e}")
            raise DownloadError(f"下载 {download_url} 失败: {e}") from e
        except OSError as e:
            logger.error(f"写入下载文件失败: {e}")
            raise DownloadError(f"写入 {dest_path} 失败: {e}") from e
        logger.info(f"下载完成，共 {downloaded} 字节")

    def download_and_extract(
        self,
        version: str,
        target_dir: Path,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        status_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        下载指定版本并解压到目标目录，完成后删除临时安装包。

        参数:
            version: 版本号
            target_dir: 解压目标目录（必须已存在）
            progress_callback: 下载进度回调函数
            status_callback: 状态消息回调函数

        抛出:
            DownloadError: 下载失败
            ExtractionError: 解压失败或解压结果缺少 bin 目录
        """
        download_url = self.build_download_url(version)
        suffix = "." + self.config_manager.get_archive_ext()
        fd, temp_name = tempfile.mkstemp(prefix=f"node-v{version}-", suffix=suffix)
        os.close(fd)
        temp_path = Path(temp_name)
        try:
            self.download_file(download_url, temp_path, progress_callback)
            if status_callback:
                status_callback("正在解压...")
            logger.info(f"正在解压到 {target_dir}")
            extract_archive(temp_path, target_dir)
        finally:
            temp_path.unlink(missing_ok=True)

        if not (target_dir / "bin").is_dir():
            raise ExtractionError(f"解压结果缺少 bin 目录: {target_dir}")
