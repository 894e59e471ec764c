"""
平台解析模块。

根据当前操作系统生成 PlatformProfile：安装根目录约定、shell 配置文件约定
以及是否支持版本切换。进程启动时解析一次，之后只读。
"""

import getpass
import os
import platform
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath
from typing import Mapping, Optional

from goswitch.errors import NotSupportedPlatformError
from goswitch.utils.logger import get_logger
from goswitch.utils.permission_manager import PermissionSetter, PosixPermissions, WindowsPermissions

logger = get_logger()

# go-switch 的文件夹名
GO_SWITCH_DIR = ".go-switch"
# 真正保存 go 版本的文件夹名
SAVE_GO_DIR = "gos"


class OsKind(Enum):
    """操作系统类型。"""

    LINUX = "linux"
    MACOS = "darwin"
    WINDOWS = "windows"


class ShellKind(Enum):
    """shell 类型。"""

    ZSH = "zsh"
    BASH = "bash"
    UNKNOWN = ""


_SYSTEM_NAMES = {
    "linux": OsKind.LINUX,
    "darwin": OsKind.MACOS,
    "windows": OsKind.WINDOWS,
}

_GO_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "armv6l",
    "armv7l": "armv6l",
}


@dataclass(frozen=True)
class PlatformProfile:
    """当前平台的只读描述。"""

    os_kind: OsKind
    path_separator: str
    home: PurePath
    root_path: PurePath
    install_root: PurePath
    shell_kind: ShellKind = ShellKind.UNKNOWN
    shell_config_candidates: Mapping[ShellKind, PurePath] = field(default_factory=dict)
    switch_supported: bool = True
    arch: str = "amd64"

    @property
    def archive_ext(self) -> str:
        return "zip" if self.os_kind is OsKind.WINDOWS else "tar.gz"

    def shell_config_for(self, shell_kind: Optional[ShellKind] = None) -> Optional[PurePath]:
        """
        获取 shell 对应的启动配置文件路径。

        参数:
            shell_kind: shell 类型，省略时使用检测到的 shell

        返回:
            配置文件路径，未识别的 shell 返回 None
        """
        kind = shell_kind or self.shell_kind
        return self.shell_config_candidates.get(kind)

    def permission_setter(self) -> PermissionSetter:
        if self.os_kind is OsKind.WINDOWS:
            return WindowsPermissions()
        return PosixPermissions()


def detect_shell_kind(shell: Optional[str]) -> ShellKind:
    """
    判断当前 shell 类型。

    取 SHELL 的最后一段路径，按子串匹配 zsh / bash。

    参数:
        shell: SHELL 环境变量的值

    返回:
        ShellKind，无法识别时返回 ShellKind.UNKNOWN
    """
    if not shell:
        logger.debug("SHELL 环境变量未设置")
        return ShellKind.UNKNOWN

    current_shell = shell.rstrip("/").split("/")[-1]
    if "zsh" in current_shell:
        return ShellKind.ZSH
    if "bash" in current_shell:
        return ShellKind.BASH
    return ShellKind.UNKNOWN


def normalize_arch(machine: str) -> str:
    machine = (machine or "").lower()
    return _GO_ARCH.get(machine, machine)


def resolve_platform(
    system: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    username: Optional[str] = None,
    machine: Optional[str] = None,
) -> PlatformProfile:
    """
    解析当前平台。

    参数:
        system: 操作系统标识，默认取 platform.system()
        environ: 环境变量映射，默认取 os.environ
        username: 当前用户名，仅 Windows 在缺少 USERPROFILE 时使用
        machine: CPU 架构，默认取 platform.machine()

    返回:
        PlatformProfile 实例

    抛出:
        NotSupportedPlatformError: 无法识别的操作系统
    """
    system_name = (system or platform.system()).lower()
    env = os.environ if environ is None else environ
    os_kind = _SYSTEM_NAMES.get(system_name)
    if os_kind is None:
        raise NotSupportedPlatformError(f"不支持的操作系统: {system_name}")

    if os_kind is OsKind.WINDOWS:
        profile_dir = env.get("USERPROFILE")
        if profile_dir:
            home = PureWindowsPath(profile_dir)
        else:
            home = PureWindowsPath("C:\\Users", username or getpass.getuser())
        path_cls = PureWindowsPath
    else:
        home = PurePosixPath(env.get("HOME") or str(Path.home()))
        path_cls = PurePosixPath

    if path_cls is _native_path_class():
        home = Path(home)

    root_path = home / GO_SWITCH_DIR
    install_root = root_path / SAVE_GO_DIR

    candidates = {}
    if os_kind is not OsKind.WINDOWS:
        candidates[ShellKind.ZSH] = home / ".zshrc"
        if os_kind is OsKind.MACOS:
            candidates[ShellKind.BASH] = home / ".bash_profile"
        else:
            candidates[ShellKind.BASH] = home / ".bashrc"

    profile = PlatformProfile(
        os_kind=os_kind,
        path_separator="\\" if os_kind is OsKind.WINDOWS else "/",
        home=home,
        root_path=root_path,
        install_root=install_root,
        shell_kind=detect_shell_kind(env.get("SHELL")),
        shell_config_candidates=candidates,
        # TODO: Windows 需要通过注册表写入 GOROOT / PATH 后才能开启切换
        switch_supported=os_kind is not OsKind.WINDOWS,
        arch=normalize_arch(machine or platform.machine()),
    )
    logger.debug(f"平台解析结果: {profile}")
    return profile


def _native_path_class():
    return PureWindowsPath if os.name == "nt" else PurePosixPath
