"""
配置管理器模块。

提供配置文件的加载、保存和验证功能。
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union

from goswitch.core.interfaces import IConfigManager
from goswitch.errors import ConfigCorruptError, ConfigLoadError, ConfigSaveError
from goswitch.utils.logger import get_logger
from goswitch.utils.permission_manager import NoopPermissions, PermissionSetter, ensure_dir

logger = get_logger()

PathLike = Union[str, Path]

CONFIG_DIR_NAME = "config"
CONFIG_FILE_NAME = "config.json"
ENV_FILE_NAME = "env.sh"


@dataclass
class Version:
    """一个已安装的 Go 版本。"""

    name: str
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.name, "path": self.path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Version":
        return cls(name=data["version"], path=data["path"])


@dataclass
class Config:
    """
    go-switch 配置。

    启动时显式构造一次，由 VersionStore 持有；只在切换或安装后显式保存。
    """

    go_switch_path: str = ""
    init: bool = False
    local_gos: List[Version] = field(default_factory=list)
    # 当前生效的 GOROOT
    go_root: str = ""
    go_env_file: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "go_switch_path": self.go_switch_path,
            "init": self.init,
            "local_gos": [v.to_dict() for v in self.local_gos],
            "go_root": self.go_root,
            "go_env_file": self.go_env_file,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        return cls(
            go_switch_path=data.get("go_switch_path", ""),
            init=data.get("init", False),
            local_gos=[Version.from_dict(v) for v in data.get("local_gos", [])],
            go_root=data.get("go_root", ""),
            go_env_file=data.get("go_env_file", ""),
        )


def _atomic_save_json(file_path: Path, data: Any, indent: int = 2) -> None:
    """
    原子保存 JSON 数据到文件，防止写入中断导致文件损坏。

    参数:
        file_path: 目标文件路径
        data: 要保存的数据
        indent: JSON 缩进
    """
    temp_path = file_path.with_suffix(file_path.suffix + ".tmp")

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, file_path)
    except Exception:
        if temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                logger.warning(f"清理临时文件失败: {temp_path}")
        raise


class ConfigManager(IConfigManager):
    """
    配置管理器类。

    负责配置文件的加载、保存和验证。
    实现 IConfigManager 抽象接口。
    """

    REQUIRED_FIELDS = {
        "go_switch_path": str,
        "init": bool,
        "local_gos": list,
        "go_root": str,
    }

    OPTIONAL_FIELDS = {
        "go_env_file": str,
    }

    def __init__(
        self,
        root_path: PathLike,
        config_file: Optional[PathLike] = None,
        permissions: Optional[PermissionSetter] = None,
    ):
        """
        初始化配置管理器。

        参数:
            root_path: go-switch 根目录
            config_file: 配置文件路径，默认为 <root>/config/config.json
            permissions: 新建目录时使用的权限策略
        """
        self.root_path = Path(root_path)
        self.config_file = Path(config_file) if config_file else (
            self.root_path / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        )
        self.permissions = permissions or NoopPermissions()

    def default_config(self) -> Config:
        """首次运行时使用的默认配置。"""
        return Config(
            go_switch_path=str(self.root_path),
            go_env_file=str(self.root_path / ENV_FILE_NAME),
        )

    def load(self) -> Config:
        """
        加载配置文件。

        文件不存在视为首次运行，返回默认配置但不写盘；
        文件存在但无法解析视为损坏。

        返回:
            Config 实例

        抛出:
            ConfigCorruptError: 配置文件无法解析或字段无效
            ConfigLoadError: 配置文件无法读取
        """
        if not self.config_file.exists():
            logger.info(f"配置文件不存在，使用默认配置: {self.config_file}")
            return self.default_config()

        logger.debug(f"从文件加载配置: {self.config_file}")
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"配置文件已损坏: {e}")
            raise ConfigCorruptError(f"配置文件 {self.config_file} 已损坏: {e}") from e
        except OSError as e:
            logger.error(f"读取配置文件失败: {e}")
            raise ConfigLoadError(f"无法读取配置文件 {self.config_file}: {e}") from e

        self.validate_config(data)
        config = Config.from_dict(data)
        if not config.go_switch_path:
            config.go_switch_path = str(self.root_path)
        logger.debug("配置加载成功")
        return config

    def save(self, config: Config) -> None:
        """
        保存配置到文件。

        先写入临时文件再替换，进程崩溃不会留下半写的配置。

        参数:
            config: 要保存的配置

        抛出:
            ConfigCorruptError: 配置内容无效
            ConfigSaveError: 写入失败
        """
        data = config.to_dict()
        self.validate_config(data)
        try:
            if self.config_file.parent.parent == self.root_path:
                ensure_dir(self.root_path, self.permissions, hidden=True)
            ensure_dir(self.config_file.parent, self.permissions)
            logger.debug(f"保存配置到 {self.config_file}")
            _atomic_save_json(self.config_file, data, indent=2)
        except OSError as e:
            logger.error(f"保存配置失败: {e}")
            raise ConfigSaveError(f"无法保存配置到 {self.config_file}: {e}") from e
        logger.debug("配置保存成功")

    def validate_config(self, data: Any) -> bool:
        """
        验证配置的有效性。

        参数:
            data: 解码后的配置数据

        返回:
            验证通过返回 True

        抛出:
            ConfigCorruptError: 配置验证失败时抛出
        """
        if not isinstance(data, dict):
            raise ConfigCorruptError(f"配置必须是对象，实际为 {type(data).__name__}")

        for name, expected_type in self.REQUIRED_FIELDS.items():
            if name not in data:
                raise ConfigCorruptError(f"缺少必需字段: {name}")
            if not isinstance(data[name], expected_type):
                raise ConfigCorruptError(
                    f"字段 '{name}' 必须是 {expected_type.__name__} 类型，"
                    f"实际为 {type(data[name]).__name__}"
                )

        for name, expected_type in self.OPTIONAL_FIELDS.items():
            if name in data and not isinstance(data[name], expected_type):
                raise ConfigCorruptError(
                    f"字段 '{name}' 必须是 {expected_type.__name__} 类型，"
                    f"实际为 {type(data[name]).__name__}"
                )

        seen = set()
        for item in data["local_gos"]:
            if not isinstance(item, dict) or not isinstance(item.get("version"), str) \
                    or not isinstance(item.get("path"), str):
                raise ConfigCorruptError(f"无效的版本条目: {item!r}")
            if item["version"] in seen:
                raise ConfigCorruptError(f"重复的版本: {item['version']}")
            seen.add(item["version"])

        return True
