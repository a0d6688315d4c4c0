"""
交互提示模块。

提供确认提示和版本选择器，命令行处理函数通过参数注入它们，测试中可替换。
"""

import shutil
import subprocess
import sys
from typing import List, Optional

from nds.utils.logger import get_logger

logger = get_logger()

AFFIRMATIVE = "y"


def confirm(message: str) -> bool:
    """
    向用户请求确认。
    
    只有输入恰好为 "y" 时才视为确认，其余输入（包括 "Y"、"yes"、空行）均视为拒绝。
    
    参数:
        message: 提示信息
        
    返回:
        用户确认返回 True，否则返回 False
    """
    print(f"{message} [y/N]", file=sys.stderr)
    try:
        answer = input()
    except EOFError:
        return False
    return answer.strip() == AFFIRMATIVE


def has_fzf() -> bool:
    """检查 fzf 是否可用。"""
    return shutil.which("fzf") is not None


def pick(items: List[str], prompt: str, multi: bool = False) -> List[str]:
    """
    让用户从列表中选择一项或多项。
    
    优先使用 fzf；fzf 不可用时打印列表并从标准输入读取版本号。
    
    参数:
        items: 候选项列表
        prompt: 提示信息
        multi: 是否允许多选
        
    返回:
        选中的项列表，取消选择时返回空列表
    """
    if not items:
        return []
    
    if has_fzf():
        cmd = ["fzf", f"--prompt={prompt}"]
        if multi:
            cmd.append("--multi")
        logger.debug(f"启动 fzf: {cmd}")
        result = subprocess.run(
            cmd,
            input="\n".join(items),
            stdout=subprocess.PIPE,
            text=True,
        )
        if result.returncode != 0:
            return []
        return [line for line in result.stdout.splitlines() if line.strip()]
    
    print("未找到 fzf，请手动输入。可选版本:", file=sys.stderr)
    for item in items:
        print(f"  {item}", file=sys.stderr)
    print(prompt, end="", file=sys.stderr, flush=True)
    try:
        answer = input().strip()
    except EOFError:
        return []
    if not answer:
        return []
    return answer.split() if multi else [answer]


def pick_one(items: List[str], prompt: str) -> Optional[str]:
    """
    单选版本。
    
    参数:
        items: 候选项列表
        prompt: 提示信息
        
    返回:
        选中的项，未选择返回 None
    """
    selected = pick(items, prompt, False)
    return selected[0] if selected else None
