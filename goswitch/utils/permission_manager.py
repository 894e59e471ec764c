"""
权限管理模块。

提供目录权限与隐藏属性的设置策略，由创建目录的组件显式持有。
"""

import ctypes
import os
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from goswitch.utils.logger import get_logger

logger = get_logger()

PathLike = Union[str, Path]

FILE_ATTRIBUTE_HIDDEN = 0x02
DIR_MODE = 0o755


class PermissionSetter(ABC):
    """权限设置策略抽象接口。"""

    @abstractmethod
    def set_permissions(self, path: PathLike) -> None:
        """为新创建的目录设置权限。"""
        pass

    @abstractmethod
    def set_hidden(self, path: PathLike) -> None:
        """将路径标记为隐藏。"""
        pass


class PosixPermissions(PermissionSetter):
    """
    Linux / macOS 权限策略。

    以点开头的目录本身即为隐藏，因此 set_hidden 不做任何事。
    """

    def __init__(self, mode: int = DIR_MODE):
        self.mode = mode

    def set_permissions(self, path: PathLike) -> None:
        os.chmod(path, self.mode)

    def set_hidden(self, path: PathLike) -> None:
        pass


class WindowsPermissions(PermissionSetter):
    """Windows 权限策略。"""

    def set_permissions(self, path: PathLike) -> None:
        os.chmod(path, stat.S_IREAD | stat.S_IWRITE)

    def set_hidden(self, path: PathLike) -> None:
        """
        通过 SetFileAttributesW 设置隐藏属性。

        参数:
            path: 目标路径

        抛出:
            OSError: 如果系统调用失败
        """
        result = ctypes.windll.kernel32.SetFileAttributesW(str(path), FILE_ATTRIBUTE_HIDDEN)
        if not result:
            raise OSError(f"SetFileAttributesW 调用失败: {path}")


class NoopPermissions(PermissionSetter):
    """不修改任何属性的策略。"""

    def set_permissions(self, path: PathLike) -> None:
        pass

    def set_hidden(self, path: PathLike) -> None:
        pass


def ensure_dir(path: PathLike, permissions: PermissionSetter, hidden: bool = False) -> bool:
    """
    确保目录存在，新建的目录交给权限策略处理。

    参数:
        path: 目录路径
        permissions: 权限设置策略
        hidden: 新建时是否同时设置隐藏属性

    返回:
        新建目录返回 True，目录已存在返回 False

    抛出:
        OSError: 目录创建或权限设置失败
    """
    target = Path(path)
    if target.is_dir():
        return False

    target.mkdir(parents=True, exist_ok=True)
    permissions.set_permissions(target)
    if hidden:
        permissions.set_hidden(target)
    logger.debug(f"已创建目录 {target}")
    return True
