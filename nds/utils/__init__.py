"""
nds 工具模块。

提供日志记录、输入验证和交互提示等工具功能。
"""

from .logger import get_logger
from .input_validator import InputValidator, InputValidationError
from .prompt import confirm, pick

__all__ = [
    "get_logger",
    "InputValidator",
    "InputValidationError",
    "confirm",
    "pick",
]
