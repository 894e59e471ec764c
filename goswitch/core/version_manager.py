"""
版本管理器模块。

提供 Go 版本的切换、安装和卸载功能。
"""

import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from goswitch.core.download_manager import DownloadManager
from goswitch.core.env_manager import EnvManager, PATH_DIRECTIVE, goroot_directive, source_directive
from goswitch.core.extractor import detect_format, extract
from goswitch.core.config_manager import Version
from goswitch.core.interfaces import IVersionManager
from goswitch.core.platform_profile import PlatformProfile, ShellKind
from goswitch.core.version_store import VersionStore
from goswitch.errors import (
    NotSupportedPlatformError,
    VersionInUseError,
    VersionManagerError,
)
from goswitch.utils.input_validator import InputValidator
from goswitch.utils.logger import get_logger
from goswitch.utils.permission_manager import PermissionSetter, ensure_dir

logger = get_logger()

EXIT = "exit"
# golang 压缩包解压之后的文件夹名称
UNZIP_GO_DIR = "go"
STAGING_PREFIX = ".staging-"

Selector = Callable[[List[str]], str]


class SwitchState(Enum):
    """切换流程的状态。"""

    IDLE = "idle"
    VERSION_CHOSEN = "version_chosen"
    PLATFORM_CHECKED = "platform_checked"
    ENVIRONMENT_PATCHED = "environment_patched"
    CONFIG_PERSISTED = "config_persisted"


@dataclass
class SwitchResult:
    """一次切换的结果。"""

    switched: bool
    version: Optional[str] = None
    target_root: Optional[str] = None
    states: List[SwitchState] = field(default_factory=list)


class VersionManager(IVersionManager):
    """
    版本管理器类。

    作为协调者串联版本选择、平台检查、环境文件写入和配置保存。
    任一步骤失败都会中止本次切换并把异常抛给调用方，不做回滚；
    此时环境文件可能已更新而配置中的 go_root 仍是旧值。
    实现 IVersionManager 抽象接口。
    """

    def __init__(
        self,
        store: VersionStore,
        profile: PlatformProfile,
        env_manager: EnvManager,
        download_manager: Optional[DownloadManager] = None,
        permissions: Optional[PermissionSetter] = None,
    ):
        """
        初始化版本管理器。

        参数:
            store: 版本存储
            profile: 当前平台
            env_manager: 环境变量管理器
            download_manager: 下载管理器
            permissions: 新建目录时使用的权限策略
        """
        self.store = store
        self.profile = profile
        self.env_manager = env_manager
        self.download_manager = download_manager or DownloadManager()
        self.permissions = permissions or profile.permission_setter()

    def switch(self, selector: Selector) -> SwitchResult:
        """
        让调用方选择版本并切换。

        参数:
            selector: 选择函数，接收版本名称列表（末尾为 exit），返回其中之一

        返回:
            SwitchResult，选择 exit 时 switched 为 False 且没有任何副作用
        """
        choices = self.store.version_names() + [EXIT]
        result = selector(choices)
        if result == EXIT:
            logger.debug("未选择版本，退出切换")
            return SwitchResult(switched=False, states=[SwitchState.IDLE])
        return self.switch_to(result)

    def switch_to(self, name: str) -> SwitchResult:
        """
        切换到指定版本。

        参数:
            name: 版本名称

        返回:
            SwitchResult

        抛出:
            VersionNotFoundError: 版本未安装
            NotSupportedPlatformError: 当前平台不支持切换
            EnvPatchError: 写入环境文件失败
            ShellReloadError: 重新加载 shell 配置失败
            ConfigSaveError: 保存配置失败
        """
        states = [SwitchState.IDLE]
        version = self.store.get_version(name)
        states.append(SwitchState.VERSION_CHOSEN)

        go_root = str(self.store.install_root / version.name)
        if not self.profile.switch_supported:
            logger.error(f"{self.profile.os_kind.value} 不支持切换版本")
            raise NotSupportedPlatformError(f"{self.profile.os_kind.value} 暂不支持切换版本")
        states.append(SwitchState.PLATFORM_CHECKED)

        logger.info(f"正在切换到 go {version.name}: {go_root}")
        self._update_go_env(go_root)
        states.append(SwitchState.ENVIRONMENT_PATCHED)

        self.store.set_active_root(go_root)
        self.store.save()
        states.append(SwitchState.CONFIG_PERSISTED)

        logger.info(f"已切换到 go {version.name}")
        states.append(SwitchState.IDLE)
        return SwitchResult(switched=True, version=version.name, target_root=go_root, states=states)

    def _update_go_env(self, go_root: str) -> None:
        env_file = self.store.env_file
        if env_file:
            self.env_manager.write_directives(env_file, [goroot_directive(go_root), PATH_DIRECTIVE])

        if self.store.initialized:
            return

        shell_kind = self.profile.shell_kind
        config_file = self.profile.shell_config_for(shell_kind)
        if shell_kind is ShellKind.UNKNOWN or config_file is None:
            logger.warning("无法识别当前 shell，跳过启动文件配置")
            return

        if os.path.exists(config_file):
            self.env_manager.reload_shell(shell_kind, config_file)
        else:
            logger.debug(f"{config_file} 不存在，跳过重新加载")

        if env_file:
            self.env_manager.ensure_line(config_file, source_directive(env_file))
            self.store.mark_initialized()

    def install(
        self,
        version: str,
        archive: Optional[str] = None,
        url: Optional[str] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        force: bool = False,
    ) -> Version:
        """
        下载并安装指定版本。

        参数:
            version: 版本号
            archive: 本地安装包路径，提供时不再下载
            url: 自定义下载地址
            progress_callback: 下载进度回调函数
            force: 已安装时是否覆盖

        返回:
            新安装的 Version

        抛出:
            InputValidationError: 版本名称无效
            VersionManagerError: 版本已安装或目标目录无法写入
            DownloadError: 下载失败
            ExtractError: 解压失败
        """
        InputValidator.validate_version_name(version)
        if self.store.find_version(version) and not force:
            raise VersionManagerError(f"版本 {version} 已安装")

        install_root = self.store.install_root
        target_dir = Path(InputValidator.safe_join_path(str(install_root), version))
        if self.store.active_root and os.path.normpath(self.store.active_root) == os.path.normpath(target_dir):
            raise VersionInUseError(f"版本 {version} 正在使用，不能覆盖")

        try:
            ensure_dir(install_root, self.permissions)
        except OSError as e:
            raise VersionManagerError(f"无法创建安装目录 {install_root}: {e}") from e

        downloaded = None
        if archive:
            archive_path = Path(archive)
        else:
            url = url or self.download_manager.build_download_url(version, self.profile)
            detect_format(url)
            downloaded = install_root / url.rstrip("/").rsplit("/", 1)[-1]
            archive_path = self.download_manager.download(url, downloaded, progress_callback)

        # 失败时不清理暂存目录，下次安装同一版本时会先删除
        staging = install_root / f"{STAGING_PREFIX}{version}"
        try:
            self._remove_tree(staging)
            extract(archive_path, staging, self.permissions)
            self._remove_tree(target_dir)
            os.replace(self._unwrap(staging), target_dir)
            self._remove_tree(staging)
        except OSError as e:
            logger.error(f"安装 go {version} 失败: {e}")
            raise VersionManagerError(f"安装 go {version} 失败: {e}") from e

        if downloaded is not None:
            self._remove_file(downloaded)

        installed = self.store.add_version(version, str(target_dir))
        self.store.save()
        logger.info(f"成功安装 go {version}: {target_dir}")
        return installed

    def uninstall(self, name: str) -> None:
        """
        卸载指定版本。

        参数:
            name: 版本名称

        抛出:
            VersionNotFoundError: 版本未安装
            VersionInUseError: 版本正在使用
            VersionManagerError: 删除目录失败
        """
        version = self.store.get_version(name)
        if self.is_active(version):
            raise VersionInUseError(f"无法卸载当前正在使用的版本 {name}")

        try:
            self._remove_tree(Path(version.path))
        except OSError as e:
            logger.error(f"删除 {version.path} 失败: {e}")
            raise VersionManagerError(f"删除 {version.path} 失败: {e}") from e

        self.store.remove_version(name)
        self.store.save()
        logger.info(f"已卸载 go {name}")

    def is_active(self, version: Version) -> bool:
        active = self.store.active_root
        if not active:
            return False
        candidates = {os.path.normpath(version.path), os.path.normpath(self.store.install_root / version.name)}
        return os.path.normpath(active) in candidates

    def current_version(self) -> Optional[Version]:
        return next((v for v in self.store.versions() if self.is_active(v)), None)

    def _unwrap(self, staging: Path) -> Path:
        # 官方压缩包只包含一个顶层 go/ 目录
        entries = list(staging.iterdir())
        if len(entries) == 1 and entries[0].is_dir():
            if entries[0].name != UNZIP_GO_DIR:
                logger.debug(f"压缩包顶层目录为 {entries[0].name}")
            return entries[0]
        return staging

    @staticmethod
    def _remove_tree(path: Path) -> None:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()

    @staticmethod
    def _remove_file(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"删除临时文件 {path} 失败: {e}")
