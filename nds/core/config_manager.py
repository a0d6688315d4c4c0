"""
配置管理器模块。

提供根目录布局和 key=value 配置文件的加载、保存和验证功能。
"""

import os
from pathlib import Path
from typing import Dict, Optional

from nds.utils.logger import get_logger
from nds.core.interfaces import IConfigManager
from nds.utils.input_validator import InputValidator, InputValidationError

logger = get_logger()

DEFAULT_MIRROR_URL = "https://nodejs.org/download/release"

TRUE_VALUES = {"on", "true", "1", "yes"}
FALSE_VALUES = {"off", "false", "0", "no"}
SUPPORTED_ARCHIVE_EXTS = ("tar.gz", "tar.xz")


class ConfigValidationError(Exception):
    """配置验证错误异常。"""
    pass


class ConfigSaveError(Exception):
    """配置保存错误异常。"""
    pass


def get_default_root() -> Path:
    """
    获取默认根目录路径。

    返回:
        $NDS_DIR，未设置时为 ~/.config/nds
    """
    root = os.environ.get("NDS_DIR")
    if root:
        return Path(root).expanduser()
    return Path.home() / ".config" / "nds"


def parse_bool(value: str) -> bool:
    """
    解析布尔配置值。

    参数:
        value: 配置值字符串

    返回:
        布尔值

    抛出:
        ConfigValidationError: 无法识别的布尔值
    """
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ConfigValidationError(f"无效的布尔值: {value!r}")


def parse_config_text(text: str) -> Dict[str, str]:
    """
    解析 key=value 格式的配置文本。

    忽略空行和 # 注释，去除值两侧的空白与引号。

    参数:
        text: 配置文件内容

    返回:
        配置字典
    """
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].strip()
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            logger.debug(f"忽略无法解析的配置行: {raw_line!r}")
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values


def _atomic_save_text(file_path: Path, content: str) -> None:
    """
    原子保存文本到文件，防止写入中断导致文件损坏。

    参数:
        file_path: 目标文件路径
        content: 文件内容
    """
    temp_path = file_path.with_name(file_path.name + ".tmp")
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(temp_path, file_path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise


class ConfigManager(IConfigManager):
    """
    配置管理器类。

    负责根目录布局（versions、default、config、logs）以及
    config 文件中各配置项的加载、保存、验证和访问。
    实现 IConfigManager 抽象接口。
    """

    CONFIG_FILE_NAME = "config"
    VERSIONS_DIR_NAME = "versions"
    DEFAULT_LINK_NAME = "default"
    LOG_DIR_NAME = "logs"

    DEFAULTS = {
        "AUTO_SWITCH": "false",
        "NODE_MIRROR": DEFAULT_MIRROR_URL,
        "ARCHIVE_EXT": "tar.gz",
        "REQUEST_TIMEOUT": "30",
    }

    def __init__(self, root_dir: Optional[Path] = None):
        """
        初始化配置管理器。

        参数:
            root_dir: 根目录，默认为 $NDS_DIR 或 ~/.config/nds
        """
        self.root_dir = Path(root_dir) if root_dir else get_default_root()
        self.versions_dir = self.root_dir / self.VERSIONS_DIR_NAME
        self.default_link = self.root_dir / self.DEFAULT_LINK_NAME
        self.config_file = self.root_dir / self.CONFIG_FILE_NAME
        self.log_dir = self.root_dir / self.LOG_DIR_NAME
        self._config: Dict[str, str] = {}
        self._loaded = False

    def validate_value(self, key: str, value: str) -> None:
        """
        验证单个配置项。

        参数:
            key: 配置键名
            value: 配置值

        抛出:
            ConfigValidationError: 配置值无效时抛出
        """
        if key == "AUTO_SWITCH":
            parse_bool(value)
        elif key == "NODE_MIRROR":
            try:
                InputValidator.validate_url(value)
            except InputValidationError as e:
                raise ConfigValidationError(f"NODE_MIRROR: {e}") from e
        elif key == "ARCHIVE_EXT":
            if value not in SUPPORTED_ARCHIVE_EXTS:
                raise ConfigValidationError(
                    f"ARCHIVE_EXT 必须是 {', '.join(SUPPORTED_ARCHIVE_EXTS)} 之一，实际为 {value!r}"
                )
        elif key == "REQUEST_TIMEOUT":
            try:
                timeout = float(value)
            except ValueError as e:
                raise ConfigValidationError(f"REQUEST_TIMEOUT 必须是数字: {value!r}") from e
            if timeout <= 0:
                raise ConfigValidationError("REQUEST_TIMEOUT 必须大于 0")

    def load_config(self) -> Dict[str, str]:
        """
        加载配置文件。

        配置文件不存在时使用默认配置（不创建文件）。
        无效的配置项记录错误日志并回退为默认值。

        返回:
            配置字典
        """
        config = dict(self.DEFAULTS)
        if self.config_file.exists():
            try:
                logger.debug(f"从文件加载配置: {self.config_file}")
                text = self.config_file.read_text(encoding="utf-8")
            except OSError as e:
                logger.error(f"加载配置文件失败，使用默认配置: {e}")
                text = ""
            for key, value in parse_config_text(text).items():
                try:
                    self.validate_value(key, value)
                except ConfigValidationError as e:
                    logger.error(f"配置验证失败，使用默认值: {e}")
                    continue
                config[key] = value
        else:
            logger.debug(f"配置文件不存在，使用默认配置: {self.config_file}")
        self._config = config
        self._loaded = True
        return self._config

    def save_config(self) -> None:
        """
        保存配置到文件。

        抛出:
            ConfigSaveError: 写入失败时抛出
        """
        lines = [f"{key}={value}" for key, value in self.config.items()]
        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            logger.debug(f"保存配置到 {self.config_file}")
            _atomic_save_text(self.config_file, "\n".join(lines) + "\n")
        except OSError as e:
            logger.error(f"保存配置失败: {e}")
            raise ConfigSaveError(f"无法保存配置到 {self.config_file}: {e}") from e

    @property
    def config(self) -> Dict[str, str]:
        """
        获取配置字典（延迟加载）。

        返回:
            配置字典
        """
        if not self._loaded:
            self.load_config()
        return self._config

    def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        获取指定键的配置值。

        参数:
            key: 配置键名
            default: 默认值

        返回:
            配置值或默认值
        """
        return self.config.get(key, default)

    def set_value(self, key: str, value: str) -> None:
        """
        设置指定键的配置值并保存。

        参数:
            key: 配置键名
            value: 配置值

        抛出:
            ConfigValidationError: 配置值无效时抛出
        """
        self.validate_value(key, value)
        self.config[key] = value
        self.save_config()

    def is_auto_switch_enabled(self) -> bool:
        """自动切换是否开启。"""
        return parse_bool(self.config.get("AUTO_SWITCH", "false"))

    def set_auto_switch(self, enabled: bool) -> None:
        """
        设置自动切换开关。

        参数:
            enabled: 是否开启
        """
        self.set_value("AUTO_SWITCH", "true" if enabled else "false")
        logger.info(f"自动切换已{'开启' if enabled else '关闭'}")

    def get_mirror_url(self) -> str:
        """
        获取下载源根地址。

        环境变量 NDS_NODE_MIRROR 优先于配置文件。

        返回:
            不带末尾斜杠的下载源地址
        """
        mirror = os.environ.get("NDS_NODE_MIRROR") or self.config["NODE_MIRROR"]
        return mirror.rstrip("/")

    def get_index_url(self) -> str:
        """获取版本索引地址。"""
        return f"{self.get_mirror_url()}/index.tab"

    def get_archive_ext(self) -> str:
        """获取安装包扩展名。"""
        return self.config["ARCHIVE_EXT"]

    def get_request_timeout(self) -> float:
        """获取网络请求超时时间（秒）。"""
        return float(self.config["REQUEST_TIMEOUT"])
