"""
环境变量管理器模块。

通过 shell 启动文件与独立的环境文件设置 GOROOT / PATH，
保证每条指令在文件中最多出现一次。
"""

import shlex
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

from goswitch.core.interfaces import IEnvManager
from goswitch.core.platform_profile import ShellKind
from goswitch.errors import EnvPatchError, ShellReloadError
from goswitch.utils.logger import get_logger
from goswitch.utils.permission_manager import NoopPermissions, PermissionSetter, ensure_dir

logger = get_logger()

PathLike = Union[str, Path]
ShellRunner = Callable[[Sequence[str]], int]


def goroot_directive(go_root: PathLike) -> str:
    return f"export GOROOT={shlex.quote(str(go_root))}"


PATH_DIRECTIVE = "export PATH=$PATH:$GOROOT/bin"


def source_directive(env_file: PathLike) -> str:
    return f"source {shlex.quote(str(env_file))}"


def _run_inherited(args: Sequence[str]) -> int:
    # 标准输出 / 错误直接继承，阻塞直到 shell 退出
    return subprocess.run(list(args), check=False).returncode


class EnvManager(IEnvManager):
    """
    环境变量管理器类。

    负责向目标文件追加指令行以及重新加载 shell 配置。
    实现 IEnvManager 抽象接口。
    """

    def __init__(
        self,
        permissions: Optional[PermissionSetter] = None,
        shell_runner: Optional[ShellRunner] = None,
    ):
        """
        初始化环境变量管理器。

        参数:
            permissions: 新建父目录时使用的权限策略
            shell_runner: 执行 shell 命令的函数，返回退出码
        """
        self.permissions = permissions or NoopPermissions()
        self._run = shell_runner or _run_inherited

    def ensure_line(self, file_path: PathLike, line: str) -> bool:
        """
        确保文件中存在指定的一行。

        逐行精确比较（不含行尾换行符）。已存在时不写入任何内容，
        因此重复调用不会改变文件。

        参数:
            file_path: 目标文件路径，不存在则创建
            line: 要写入的指令行

        返回:
            追加了新行返回 True，已存在返回 False

        抛出:
            EnvPatchError: 文件读写失败
        """
        path = Path(file_path)
        wanted = line.encode("utf-8")
        try:
            ensure_dir(path.parent, self.permissions)
            # 按字节比较，启动文件中的非 UTF-8 内容原样保留
            with open(path, "a+b") as f:
                f.seek(0)
                content = f.read()
                for existing in content.split(b"\n"):
                    if existing.endswith(b"\r"):
                        existing = existing[:-1]
                    if existing == wanted:
                        logger.debug(f"'{line}' 已存在于 {path}")
                        return False

                prefix = b"" if not content or content.endswith(b"\n") else b"\n"
                f.write(prefix + wanted + b"\n")
        except OSError as e:
            logger.error(f"写入 {path} 失败: {e}")
            raise EnvPatchError(f"写入 {path} 失败: {e}") from e

        logger.info(f"已添加 '{line}' 到 {path}")
        return True

    def truncate_file(self, file_path: PathLike) -> None:
        """
        清空文件内容，文件不存在则创建。

        参数:
            file_path: 目标文件路径

        抛出:
            EnvPatchError: 路径是目录或写入失败
        """
        path = Path(file_path)
        if path.is_dir():
            raise EnvPatchError(f"{path} 是一个目录")
        try:
            ensure_dir(path.parent, self.permissions)
            with open(path, "w", encoding="utf-8"):
                pass
        except OSError as e:
            logger.error(f"清空 {path} 失败: {e}")
            raise EnvPatchError(f"清空 {path} 失败: {e}") from e

    def write_directives(self, file_path: PathLike, lines: Iterable[str]) -> None:
        """
        重写独立环境文件，只保留给定的指令行。

        参数:
            file_path: 环境文件路径
            lines: 指令行列表

        抛出:
            EnvPatchError: 文件读写失败
        """
        self.truncate_file(file_path)
        for line in lines:
            self.ensure_line(file_path, line)

    def reload_shell(self, shell_kind: ShellKind, config_file: PathLike) -> None:
        """
        在子进程中重新加载 shell 配置文件。

        没有超时，也不会回滚已写入的文件。

        参数:
            shell_kind: shell 类型
            config_file: 要 source 的配置文件

        抛出:
            ShellReloadError: 无法启动 shell 或 shell 以非零码退出
        """
        if shell_kind is ShellKind.UNKNOWN:
            raise ShellReloadError("无法识别的 shell，不能重新加载配置")

        args = [shell_kind.value, "-c", source_directive(config_file)]
        try:
            returncode = self._run(args)
        except OSError as e:
            logger.error(f"启动 {shell_kind.value} 失败: {e}")
            raise ShellReloadError(f"启动 {shell_kind.value} 失败: {e}") from e

        if returncode != 0:
            logger.error(f"重新加载 {shell_kind.value} 配置失败，退出码 {returncode}")
            raise ShellReloadError(
                f"重新加载 {config_file} 失败: {shell_kind.value} 退出码 {returncode}"
            )
        logger.info(f"已重新加载 {config_file}")
