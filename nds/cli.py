"""
nds 命令行接口模块。

标准输出只写 shell 包装函数需要的内容（bin 路径、export 语句、列表），
提示信息和错误写入标准错误。
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from nds import __version__
from nds.core.config_manager import ConfigManager, ConfigValidationError, ConfigSaveError
from nds.core.platform_info import UnsupportedPlatformError, get_platform
from nds.core.remote_fetcher import RemoteFetcherError
from nds.core.download_manager import DownloadManagerError
from nds.core.version_resolver import VersionResolverError
from nds.core.local_manager import LocalManagerError, RemovalAbortedError
from nds.core.env_manager import EnvManagerError, format_export
from nds.core.shell_integration import DEFAULT_PATH_HINT, ShellIntegrationError
from nds.core.version_manager import VersionManager
from nds.utils.input_validator import InputValidationError
from nds.utils.logger import get_logger, setup_logger
from nds.utils.prompt import confirm, pick, pick_one, has_fzf

logger = get_logger()

PICK = "pick"

NdsError = (
    RemoteFetcherError,
    DownloadManagerError,
    VersionResolverError,
    LocalManagerError,
    EnvManagerError,
    ShellIntegrationError,
    UnsupportedPlatformError,
    ConfigValidationError,
    ConfigSaveError,
    InputValidationError,
)


def create_parser() -> argparse.ArgumentParser:
    """
    创建并配置命令行参数解析器。

    返回:
        配置好的 ArgumentParser 实例
    """
    parser = argparse.ArgumentParser(
        prog="nds",
        description="nds - Node.js 版本切换器",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  nds available            列出最新 5 个主版本的可用版本
  nds install 22           安装 22.x 的最新版本
  nds use 20.13.1          在当前 shell 使用 20.13.1
  nds set latest           将已安装的最高版本设为默认版本
  nds remove 18.17.1       删除 18.17.1
  nds list pick            交互选择并删除已安装版本
  nds install pick         交互选择并安装版本
  nds auto on              根据 .nds / .nvmrc 自动切换版本（.nds 优先）
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="启用详细输出",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="命令",
        metavar="<command>",
    )

    list_parser = subparsers.add_parser(
        "list",
        help="列出已安装版本，标记 [default] 和 [current]",
    )
    list_parser.add_argument(
        "mode",
        nargs="?",
        choices=[PICK],
        help="pick: 交互选择要删除的版本",
    )
    list_parser.add_argument(
        "--format",
        "-f",
        choices=["simple", "json"],
        default="simple",
        help="输出格式",
    )

    available_parser = subparsers.add_parser(
        "available",
        help="列出可用版本（最新 5 个主版本）",
    )
    available_parser.add_argument(
        "--all",
        "-a",
        action="store_true",
        help="列出所有可用版本",
    )

    install_parser = subparsers.add_parser(
        "install",
        help="安装指定版本（如 22.2.0、18、latest 或 pick）",
    )
    install_parser.add_argument(
        "version",
        help="版本号、主版本号、latest 或 pick",
    )

    subparsers.add_parser(
        "latest",
        help="安装最新版本",
    )

    for name, help_text in (
        ("use", "在当前 shell 使用已安装版本"),
        ("set", "设置新 shell 的默认版本"),
    ):
        switch_parser = subparsers.add_parser(name, help=help_text)
        switch_parser.add_argument(
            "version",
            help="版本号、主版本号、版本前缀或 latest",
        )
        switch_parser.add_argument(
            "--export",
            action="store_true",
            help="输出可被 eval 的 export PATH 语句",
        )

    remove_parser = subparsers.add_parser(
        "remove",
        help="删除已安装版本",
    )
    remove_parser.add_argument(
        "version",
        help="版本号、主版本号、版本前缀或 latest",
    )

    auto_parser = subparsers.add_parser(
        "auto",
        help="开启或关闭按 .nds / .nvmrc 自动切换",
    )
    auto_parser.add_argument(
        "state",
        nargs="?",
        choices=["on", "off", "status"],
        default="on",
        help="on（默认）、off 或 status",
    )

    subparsers.add_parser("auto-switch-internal")

    subparsers.add_parser(
        "init",
        help="写入 PATH 初始化和 nds shell 函数",
    )

    subparsers.add_parser(
        "help",
        help="显示帮助信息",
    )

    return parser


def _get_manager() -> VersionManager:
    """
    获取版本管理器实例。

    返回:
        VersionManager 实例
    """
    return VersionManager(ConfigManager())


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def _progress(downloaded: int, total: int) -> None:
    if total <= 0:
        print(f"\r已下载 {downloaded} 字节", end="", file=sys.stderr, flush=True)
        return
    percent = min(int(downloaded / total * 100), 100)
    bar_len = 30
    filled = int(bar_len * percent / 100)
    bar = "=" * filled + " " * (bar_len - filled)
    print(f"\r[{bar}] {percent}%", end="", file=sys.stderr, flush=True)


def _status(message: str) -> None:
    _err(f"\n{message}")


def run_cli(args: argparse.Namespace) -> int:
    """
    运行命令行接口。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码（0 表示成功）
    """
    config_manager = ConfigManager()
    setup_logger(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        log_dir=config_manager.log_dir,
    )

    if args.command in (None, "help"):
        create_parser().print_help()
        return 0

    command_handlers = {
        "list": handle_list,
        "available": handle_available,
        "install": handle_install,
        "latest": handle_latest,
        "use": handle_use,
        "set": handle_set,
        "remove": handle_remove,
        "auto": handle_auto,
        "auto-switch-internal": handle_auto_switch_internal,
        "init": handle_init,
    }

    handler = command_handlers.get(args.command)
    if handler is None:
        _err(f"未知命令: {args.command}")
        return 1

    try:
        get_platform()
        return handler(args)
    except RemovalAbortedError:
        _err("已取消。")
        return 1
    except NdsError as e:
        logger.debug(f"命令 {args.command} 失败: {e!r}")
        _err(f"错误: {e}")
        return 1


def handle_list(args: argparse.Namespace) -> int:
    """
    处理 list 命令：列出已安装版本，或交互选择要删除的版本。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()

    if args.mode == PICK:
        return _pick_and_remove(manager)

    versions = manager.list_installed()
    if args.format == "json":
        print(json.dumps(versions, indent=2))
        return 0

    print("已安装的 Node.js 版本:")
    if not versions:
        print("  (无)")
        return 0
    for v in versions:
        marker = ""
        if v["is_default"]:
            marker += "[default]"
        if v["is_current"]:
            marker += "[current]"
        print(f"  {v['version']} {marker}".rstrip())
    return 0


def _pick_and_remove(manager: VersionManager) -> int:
    versions = manager.local_manager.installed_versions()
    if not versions:
        print("没有已安装的 Node.js 版本。")
        return 0
    if not has_fzf():
        _err("未找到 fzf，请安装 fzf 以使用交互删除。")
        print("已安装版本:")
        for v in versions:
            print(f"  {v}")
        print("可使用: nds remove <version>")
        return 1

    picked = pick(versions, "选择要删除的版本（Tab 标记，Enter 确认，ESC 取消）: ", True)
    if not picked:
        print("未选择任何版本，没有删除。")
        return 0

    print("已选择:")
    for v in picked:
        print(f"  - {v}")
    if not confirm("确定要删除以上所有版本吗？"):
        raise RemovalAbortedError("用户取消批量删除")
    for v in picked:
        manager.remove(v, require_confirmation=False)
        print(f"已删除 Node.js {v}。")
    return 0


def handle_available(args: argparse.Namespace) -> int:
    """
    处理 available 命令：列出远程可用版本。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()
    releases = manager.get_available_versions(top_majors=None if args.all else 5)
    for r in releases:
        if r.get("lts"):
            print(f"{r['version']}  (LTS: {r['lts']})")
        else:
            print(r["version"])
    return 0


def _install(manager: VersionManager, token: str) -> int:
    _err(f"正在安装 Node.js {token}...")
    version, newly_installed = manager.install(token, _progress, _status)
    if newly_installed:
        _err(f"\nNode.js {version} 安装成功。")
    else:
        _err(f"Node.js {version} 已安装。")
    return 0


def handle_install(args: argparse.Namespace) -> int:
    """
    处理 install 命令：下载并安装指定版本。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()

    if args.version == PICK:
        candidates = manager.remote_fetcher.fetch_top_majors(5)
        version = pick_one(candidates, "选择 Node.js 版本: ")
        if not version:
            _err("未选择版本。")
            return 0
        return _install(manager, version)

    return _install(manager, args.version)


def handle_latest(args: argparse.Namespace) -> int:
    """处理 latest 命令：安装最新版本。"""
    return _install(_get_manager(), "latest")


def _emit_switch(manager: VersionManager, version: str, export: bool) -> None:
    if export:
        new_path = manager.compute_path(version, os.environ.get("PATH", ""))
        print(format_export("PATH", new_path))
    else:
        print(manager.bin_dir(version))


def handle_use(args: argparse.Namespace) -> int:
    """
    处理 use 命令：输出匹配版本的 bin 路径，由 shell 函数加入 PATH。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()
    version = manager.use(args.version)
    _emit_switch(manager, version, args.export)
    _err(f"正在当前 shell 使用 Node.js {version}。")
    return 0


def handle_set(args: argparse.Namespace) -> int:
    """
    处理 set 命令：更新 default 链接并输出 bin 路径。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()
    version = manager.set_default(args.version)
    _emit_switch(manager, version, args.export)
    _err(f"默认 Node.js 版本已设置为 {version}。")
    _err("")
    _err("在 .bashrc 或 .zshrc 中加入以下内容，新 shell 将自动使用默认版本:")
    _err(DEFAULT_PATH_HINT)
    return 0


def handle_remove(args: argparse.Namespace) -> int:
    """
    处理 remove 命令：确认后删除已安装版本。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()
    version = manager.remove(args.version, require_confirmation=True, confirm=confirm)
    print(f"已删除 Node.js {version}。")
    return 0


def handle_auto(args: argparse.Namespace) -> int:
    """
    处理 auto 命令：开启、关闭或查看自动切换。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()

    if args.state == "status":
        enabled = manager.config_manager.is_auto_switch_enabled()
        print(f"AUTO_SWITCH: {'on' if enabled else 'off'}")
        for path, installed in manager.shell_integration.hook_status().items():
            print(f"  {path}: {'已安装钩子' if installed else '未安装钩子'}")
        return 0

    if args.state == "off":
        updated = manager.disable_auto_switch()
        for path in updated:
            print(f"已移除 {path} 中的自动切换钩子")
        print("自动切换已关闭。请重启 shell 或执行: source ~/.bashrc 或 source ~/.zshrc")
        return 0

    updated = manager.enable_auto_switch()
    for path in updated:
        print(f"已在 {path} 中启用自动切换")
    print("自动切换已开启。请重启 shell 或执行: source ~/.bashrc 或 source ~/.zshrc")
    return 0


def handle_auto_switch_internal(args: argparse.Namespace) -> int:
    """
    处理 auto-switch-internal 命令：由提示符钩子调用。

    发生切换时向标准输出写入 export PATH 语句，否则不输出任何内容。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()
    result = manager.auto_switch(Path.cwd(), os.environ.get("PATH", ""), _err)
    if result is None:
        return 0
    print(format_export("PATH", result.new_path))
    _err(f"[nds] 正在使用 Node.js {result.version}（来自 {result.marker.name}）")
    return 0


def handle_init(args: argparse.Namespace) -> int:
    """
    处理 init 命令：向 shell 配置文件写入 nds 初始化代码。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码
    """
    manager = _get_manager()
    updated = manager.init_shell()
    for path in updated:
        print(f"已向 {path} 写入 nds 初始化代码")
    if updated:
        print("完成！请重启终端或执行: source ~/.bashrc 或 source ~/.zshrc")
    else:
        print("无需修改（已初始化）。")
    return 0
