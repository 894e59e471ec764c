"""
错误类型模块。

定义 go-switch 所有异常及其错误类别。调用方根据异常类型或 kind
决定是否终止命令，被调用方只负责抛出。
"""

from enum import Enum


class ErrorKind(Enum):
    """错误类别。"""

    UNSUPPORTED_FORMAT = "unsupported_format"
    IO_ERROR = "io_error"
    SUBPROCESS_ERROR = "subprocess_error"
    NOT_SUPPORTED_PLATFORM = "not_supported_platform"
    CONFIG_CORRUPT = "config_corrupt"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"


class GoSwitchError(Exception):
    """go-switch 异常基类。"""

    kind: ErrorKind = ErrorKind.IO_ERROR


class ExtractError(GoSwitchError):
    """解压错误异常。"""

    kind = ErrorKind.IO_ERROR


class UnsupportedFormatError(ExtractError):
    """不支持的压缩包格式异常。"""

    kind = ErrorKind.UNSUPPORTED_FORMAT


class EnvPatchError(GoSwitchError):
    """环境文件写入错误异常。"""

    kind = ErrorKind.IO_ERROR


class ShellReloadError(GoSwitchError):
    """shell 配置重新加载失败异常。"""

    kind = ErrorKind.SUBPROCESS_ERROR


class NotSupportedPlatformError(GoSwitchError):
    """当前平台不支持切换异常。"""

    kind = ErrorKind.NOT_SUPPORTED_PLATFORM


class ConfigCorruptError(GoSwitchError):
    """配置文件损坏异常。"""

    kind = ErrorKind.CONFIG_CORRUPT


class ConfigLoadError(GoSwitchError):
    """配置读取错误异常。"""

    kind = ErrorKind.IO_ERROR


class ConfigSaveError(GoSwitchError):
    """配置保存错误异常。"""

    kind = ErrorKind.IO_ERROR


class DownloadError(GoSwitchError):
    """下载错误异常。"""

    kind = ErrorKind.IO_ERROR


class VersionManagerError(GoSwitchError):
    """版本管理错误异常。"""

    kind = ErrorKind.IO_ERROR


class VersionNotFoundError(VersionManagerError):
    """版本未找到错误异常。"""

    kind = ErrorKind.NOT_FOUND


class VersionInUseError(VersionManagerError):
    """版本正在使用错误异常。"""

    kind = ErrorKind.INVALID_INPUT


class InputValidationError(GoSwitchError):
    """输入验证错误异常。"""

    kind = ErrorKind.INVALID_INPUT
