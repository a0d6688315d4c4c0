"""
输入验证模块。

提供版本号、路径和 URL 等用户输入的验证和 sanitization 功能。
"""

import os
import re

from nds.utils.logger import get_logger

logger = get_logger()


class InputValidationError(Exception):
    """输入验证错误异常。"""
    pass


class InputValidator:
    """
    输入验证器类。
    
    提供用户输入的验证和 sanitization 功能。
    """
    
    VERSION_TOKEN_PATTERN = re.compile(r'^v?\d+(?:\.\d+)*$')
    VERSION_ID_PATTERN = re.compile(r'^\d+\.\d+\.\d+$')
    URL_PATTERN = re.compile(r'^https?://\S+$', re.IGNORECASE)
    MAX_VERSION_LENGTH = 100
    
    @classmethod
    def sanitize_version_token(cls, token: str) -> str:
        """
        sanitize 版本标记：去除首尾空白。
        
        参数:
            token: 原始版本标记
            
        返回:
            sanitized 后的版本标记
        """
        if not token:
            return ""
        return token.strip()
    
    @classmethod
    def validate_version_token(cls, token: str) -> bool:
        """
        验证版本标记的有效性。
        
        合法的版本标记为 latest、纯数字主版本号或以点分隔的版本前缀，
        允许带前导 v。
        
        参数:
            token: 版本标记
            
        返回:
            验证通过返回 True，否则抛出 InputValidationError
        """
        if not token or not token.strip():
            raise InputValidationError("版本号不能为空")
        
        token = token.strip()
        
        if len(token) > cls.MAX_VERSION_LENGTH:
            raise InputValidationError(f"版本号不能超过 {cls.MAX_VERSION_LENGTH} 个字符")
        
        if token == "latest":
            return True
        
        if not cls.VERSION_TOKEN_PATTERN.match(token):
            raise InputValidationError(f"版本号格式无效: {token}")
        
        return True
    
    @classmethod
    def validate_version_id(cls, version: str) -> bool:
        """
        验证完整版本号（MAJOR.MINOR.PATCH）。
        
        参数:
            version: 版本号字符串
            
        返回:
            验证通过返回 True，否则抛出 InputValidationError
        """
        if not version or not cls.VERSION_ID_PATTERN.match(version):
            raise InputValidationError(f"不是完整的版本号: {version!r}")
        return True
    
    @classmethod
    def validate_url(cls, url: str) -> bool:
        """
        验证 URL 的有效性。
        
        参数:
            url: URL 字符串
            
        返回:
            验证通过返回 True，否则抛出 InputValidationError
        """
        if not url or not url.strip():
            raise InputValidationError("URL 不能为空")
        
        if not cls.URL_PATTERN.match(url.strip()):
            raise InputValidationError(f"URL 格式无效: {url}")
        
        return True
    
    @classmethod
    def safe_join_path(cls, base_path: str, *paths: str) -> str:
        """
        安全连接路径，防止路径遍历。
        
        参数:
            base_path: 基础路径
            *paths: 要连接的路径部分
            
        返回:
            安全连接后的路径
            
        抛出:
            InputValidationError: 如果结果路径不在 base_path 内部
        """
        base = os.path.abspath(base_path)
        joined = os.path.abspath(os.path.join(base, *paths))
        if joined != base and not joined.startswith(base + os.sep):
            raise InputValidationError(f"路径遍历检测: {joined}")
        return joined
