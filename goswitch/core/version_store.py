"""
版本存储模块。

持有内存中的 Config，并通过 ConfigManager 显式持久化。
"""

from pathlib import Path
from typing import List, Optional

from goswitch.core.config_manager import Config, ConfigManager, Version
from goswitch.core.platform_profile import SAVE_GO_DIR
from goswitch.errors import VersionNotFoundError
from goswitch.utils.logger import get_logger

logger = get_logger()


class VersionStore:
    """
    已安装版本与当前 GOROOT 的存储。

    所有修改只作用于内存，调用 save() 后才写盘。
    """

    def __init__(self, config: Config, config_manager: ConfigManager):
        self.config = config
        self.config_manager = config_manager

    @classmethod
    def load(cls, config_manager: ConfigManager) -> "VersionStore":
        return cls(config_manager.load(), config_manager)

    @property
    def root_path(self) -> Path:
        return Path(self.config.go_switch_path or self.config_manager.root_path)

    @property
    def install_root(self) -> Path:
        """保存各个 go 版本的目录。"""
        return self.root_path / SAVE_GO_DIR

    @property
    def env_file(self) -> Optional[Path]:
        return Path(self.config.go_env_file) if self.config.go_env_file else None

    @property
    def active_root(self) -> str:
        return self.config.go_root

    @property
    def initialized(self) -> bool:
        return self.config.init

    def versions(self) -> List[Version]:
        return list(self.config.local_gos)

    def version_names(self) -> List[str]:
        return [v.name for v in self.config.local_gos]

    def find_version(self, name: str) -> Optional[Version]:
        return next((v for v in self.config.local_gos if v.name == name), None)

    def get_version(self, name: str) -> Version:
        """
        获取指定版本。

        参数:
            name: 版本名称

        返回:
            Version 实例

        抛出:
            VersionNotFoundError: 版本未安装
        """
        version = self.find_version(name)
        if version is None:
            raise VersionNotFoundError(f"版本 {name} 未安装")
        return version

    def add_version(self, name: str, path: str) -> Version:
        """
        添加版本，同名版本会被替换以保证名称唯一。

        参数:
            name: 版本名称
            path: 安装路径

        返回:
            新的 Version 实例
        """
        version = Version(name=name, path=path)
        for index, existing in enumerate(self.config.local_gos):
            if existing.name == name:
                self.config.local_gos[index] = version
                logger.debug(f"已更新版本 {name}: {path}")
                return version
        self.config.local_gos.append(version)
        logger.debug(f"已添加版本 {name}: {path}")
        return version

    def remove_version(self, name: str) -> Version:
        version = self.get_version(name)
        self.config.local_gos.remove(version)
        return version

    def set_active_root(self, path: str) -> None:
        self.config.go_root = path

    def mark_initialized(self) -> None:
        self.config.init = True

    def save(self) -> None:
        self.config_manager.save(self.config)
