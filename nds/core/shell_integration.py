"""
Shell 集成模块。

在 ~/.bashrc 和 ~/.zshrc 中写入或移除 nds 的初始化代码块和自动切换钩子。
每个代码块由开始/结束标记包围，写入前先删除同名旧块，因此重复执行不会产生重复内容。
"""

from pathlib import Path
from typing import Dict, List, Optional

from nds.utils.logger import get_logger

logger = get_logger()


class ShellIntegrationError(Exception):
    """Shell 配置文件读写错误异常。"""
    pass

SHELL_PROFILES = {
    "bash": ".bashrc",
    "zsh": ".zshrc",
}

INIT_BLOCK = "init"
AUTO_SWITCH_BLOCK = "auto-switch"

INIT_CODE = '''if [ -d "${NDS_DIR:-$HOME/.config/nds}/default/bin" ]; then
  export PATH="${NDS_DIR:-$HOME/.config/nds}/default/bin:$PATH"
fi
nds() {
  if [ "$1" = "use" ] || [ "$1" = "set" ]; then
    local _nds_out
    _nds_out="$(command nds "$1" --export "${@:2}")" || return $?
    eval "$_nds_out"
  else
    command nds "$@"
  fi
}'''

AUTO_SWITCH_FUNC = '''_nds_auto_switch() {
  if command -v nds >/dev/null 2>&1; then
    local _nds_out
    _nds_out="$(command nds auto-switch-internal)" && [ -n "$_nds_out" ] && eval "$_nds_out"
  fi
}'''

AUTO_SWITCH_HOOKS = {
    "bash": '''if [[ "$PROMPT_COMMAND" != *_nds_auto_switch* ]]; then
  PROMPT_COMMAND="_nds_auto_switch${PROMPT_COMMAND:+; $PROMPT_COMMAND}"
fi''',
    "zsh": '''autoload -U add-zsh-hook
add-zsh-hook precmd _nds_auto_switch''',
}

DEFAULT_PATH_HINT = (
    'if [ -d "$HOME/.config/nds/default/bin" ]; then '
    'export PATH="$HOME/.config/nds/default/bin:$PATH"; fi'
)


def start_marker(name: str) -> str:
    return f"# >>> nds {name} >>>"


def end_marker(name: str) -> str:
    return f"# <<< nds {name} <<<"


def render_block(name: str, body: str) -> str:
    """生成带标记的代码块。"""
    return f"{start_marker(name)}\n{body}\n{end_marker(name)}\n"


def has_block(content: str, name: str) -> bool:
    """判断内容中是否已有指定代码块。"""
    return start_marker(name) in content


def remove_block(content: str, name: str) -> str:
    """
    移除内容中所有指定名称的代码块。

    缺少结束标记时，从开始标记删到文件末尾。

    参数:
        content: 配置文件内容
        name: 代码块名称

    返回:
        移除后的内容
    """
    start, end = start_marker(name), end_marker(name)
    result: List[str] = []
    in_block = False
    for line in content.splitlines(keepends=True):
        stripped = line.strip()
        if not in_block and stripped == start:
            in_block = True
            while result and not result[-1].strip():
                result.pop()
            continue
        if in_block:
            if stripped == end:
                in_block = False
            continue
        result.append(line)
    return "".join(result)


def upsert_block(content: str, name: str, body: str) -> str:
    """
    写入代码块：先删除同名旧块，再追加到末尾。

    参数:
        content: 配置文件内容
        name: 代码块名称
        body: 代码块内容

    返回:
        更新后的内容
    """
    content = remove_block(content, name)
    if content and not content.endswith("\n"):
        content += "\n"
    if content:
        content += "\n"
    return content + render_block(name, body)


class ShellIntegration:
    """
    Shell 集成类。

    只修改已经存在的 shell 配置文件，不主动创建新文件。
    """

    def __init__(self, home_dir: Optional[Path] = None):
        """
        初始化 Shell 集成。

        参数:
            home_dir: 用户主目录，默认为 Path.home()
        """
        self.home_dir = Path(home_dir) if home_dir else Path.home()

    def profiles(self) -> Dict[str, Path]:
        """获取已存在的 shell 配置文件。"""
        result = {}
        for shell, filename in SHELL_PROFILES.items():
            path = self.home_dir / filename
            if path.is_file():
                result[shell] = path
        return result

    def _auto_switch_body(self, shell: str) -> str:
        return f"{AUTO_SWITCH_FUNC}\n{AUTO_SWITCH_HOOKS[shell]}"

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"读取 {path} 失败: {e}")
            raise ShellIntegrationError(f"无法读取 {path}: {e}") from e

    def _update(self, path: Path, new_content: str, old_content: str) -> bool:
        if new_content == old_content:
            return False
        try:
            path.write_text(new_content, encoding="utf-8")
        except OSError as e:
            logger.error(f"写入 {path} 失败: {e}")
            raise ShellIntegrationError(f"无法写入 {path}: {e}") from e
        return True

    def install_init(self) -> List[Path]:
        """
        写入 PATH 初始化和 nds 包装函数。

        已写入的文件不会重复修改。

        返回:
            实际修改的文件列表
        """
        updated = []
        for shell, path in self.profiles().items():
            content = self._read(path)
            if has_block(content, INIT_BLOCK):
                logger.debug(f"{path} 已包含 nds 初始化代码")
                continue
            if self._update(path, upsert_block(content, INIT_BLOCK, INIT_CODE), content):
                logger.info(f"已写入 nds 初始化代码到 {path}")
                updated.append(path)
        return updated

    def install_auto_switch_hook(self) -> List[Path]:
        """
        写入自动切换钩子（bash 使用 PROMPT_COMMAND，zsh 使用 precmd）。

        返回:
            实际修改的文件列表
        """
        updated = []
        for shell, path in self.profiles().items():
            content = self._read(path)
            new_content = upsert_block(content, AUTO_SWITCH_BLOCK, self._auto_switch_body(shell))
            if self._update(path, new_content, content):
                logger.info(f"已启用 {path} 中的自动切换")
                updated.append(path)
        return updated

    def remove_auto_switch_hook(self) -> List[Path]:
        """
        移除自动切换钩子。

        返回:
            实际修改的文件列表
        """
        updated = []
        for path in self.profiles().values():
            content = self._read(path)
            if not has_block(content, AUTO_SWITCH_BLOCK):
                continue
            if self._update(path, remove_block(content, AUTO_SWITCH_BLOCK), content):
                logger.info(f"已移除 {path} 中的自动切换")
                updated.append(path)
        return updated

    def hook_status(self) -> Dict[Path, bool]:
        """
        获取各配置文件中自动切换钩子的安装状态。

        返回:
            配置文件路径到是否已安装的映射
        """
        return {
            path: has_block(self._read(path), AUTO_SWITCH_BLOCK)
            for path in self.profiles().values()
        }
