"""
go-switch 核心模块。

提供解压、环境文件管理、平台解析、配置管理和版本切换功能。
"""

from .interfaces import IConfigManager, IEnvManager, IVersionManager
from .config_manager import Config, ConfigManager, Version
from .env_manager import EnvManager
from .extractor import extract, detect_format
from .platform_profile import OsKind, ShellKind, PlatformProfile, resolve_platform, detect_shell_kind
from .version_store import VersionStore
from .download_manager import DownloadManager
from .version_manager import VersionManager, SwitchResult, SwitchState, EXIT
from . import version_utils

__all__ = [
    "IConfigManager", "IEnvManager", "IVersionManager",
    "Config", "ConfigManager", "Version",
    "EnvManager",
    "extract", "detect_format",
    "OsKind", "ShellKind", "PlatformProfile", "resolve_platform", "detect_shell_kind",
    "VersionStore",
    "DownloadManager",
    "VersionManager", "SwitchResult", "SwitchState", "EXIT",
    "version_utils",
]
