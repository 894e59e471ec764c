"""
输入验证模块。

提供版本名称和路径的验证功能。
"""

import os
import re

from goswitch.errors import InputValidationError
from goswitch.utils.logger import get_logger

logger = get_logger()


class InputValidator:
    """
    输入验证器类。

    版本名称会被用作安装目录名，因此必须拒绝路径分隔符和 `..`。
    """

    VERSION_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9][a-zA-Z0-9._+-]*$')
    MAX_VERSION_LENGTH = 100
    MAX_PATH_LENGTH = 1024

    @classmethod
    def validate_version_name(cls, version: str) -> bool:
        """
        验证版本名称的有效性。

        参数:
            version: 版本名称

        返回:
            验证通过返回 True，否则抛出 InputValidationError
        """
        if not version or not version.strip():
            raise InputValidationError("版本名称不能为空")

        if len(version) > cls.MAX_VERSION_LENGTH:
            raise InputValidationError(f"版本名称不能超过 {cls.MAX_VERSION_LENGTH} 个字符")

        if ".." in version or not cls.VERSION_NAME_PATTERN.match(version):
            raise InputValidationError(f"无效的版本名称: {version}")

        return True

    @classmethod
    def validate_path(cls, path: str) -> bool:
        """
        验证路径的有效性。

        环境文件路径会写入 shell 启动文件的 source 行，不能包含换行符。

        参数:
            path: 路径字符串

        返回:
            验证通过返回 True，否则抛出 InputValidationError
        """
        if path is None:
            return True

        if len(path) > cls.MAX_PATH_LENGTH:
            raise InputValidationError(f"路径不能超过 {cls.MAX_PATH_LENGTH} 个字符")

        if "\n" in path or "\r" in path:
            raise InputValidationError("路径不能包含换行符")

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
            InputValidationError: 如果结果路径位于 base_path 外部
        """
        base = os.path.abspath(base_path)
        joined = os.path.abspath(os.path.join(base, *paths))
        if joined != base and not joined.startswith(base.rstrip(os.sep) + os.sep):
            logger.warning(f"路径遍历检测: {joined}")
            raise InputValidationError(f"路径遍历检测: {joined}")
        return joined
