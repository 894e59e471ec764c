"""
go-switch 工具模块。

提供日志记录、权限策略、输入验证和重试等工具功能。
"""

from .logger import get_logger, setup_logger
from .permission_manager import (
    PermissionSetter,
    PosixPermissions,
    WindowsPermissions,
    NoopPermissions,
    ensure_dir,
)
from .retry import RetryHandler
from .input_validator import InputValidator

__all__ = [
    "get_logger",
    "setup_logger",
    "PermissionSetter",
    "PosixPermissions",
    "WindowsPermissions",
    "NoopPermissions",
    "ensure_dir",
    "RetryHandler",
    "InputValidator",
]
