"""
核心模块抽象接口定义。

定义 ConfigManager、EnvManager、VersionManager 等核心模块的抽象接口。
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional


class IConfigManager(ABC):
    """配置管理器抽象接口。"""

    @abstractmethod
    def load(self) -> Any:
        """加载配置，文件不存在时返回默认配置。"""
        pass

    @abstractmethod
    def save(self, config: Any) -> None:
        """保存配置到文件。"""
        pass


class IEnvManager(ABC):
    """环境变量管理器抽象接口。"""

    @abstractmethod
    def ensure_line(self, file_path: Any, line: str) -> bool:
        """确保文件中存在指定的一行。"""
        pass

    @abstractmethod
    def write_directives(self, file_path: Any, lines: Iterable[str]) -> None:
        """重写环境文件，只保留给定的指令行。"""
        pass

    @abstractmethod
    def reload_shell(self, shell_kind: Any, config_file: Any) -> None:
        """重新加载 shell 配置文件。"""
        pass


class IVersionManager(ABC):
    """版本管理器抽象接口。"""

    @abstractmethod
    def switch(self, selector: Callable[[List[str]], str]) -> Any:
        """交互式选择并切换版本。"""
        pass

    @abstractmethod
    def switch_to(self, name: str) -> Any:
        """切换到指定版本。"""
        pass

    @abstractmethod
    def install(
        self,
        version: str,
        archive: Optional[str] = None,
        url: Optional[str] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        force: bool = False,
    ) -> Any:
        """下载并安装指定版本。"""
        pass

    @abstractmethod
    def uninstall(self, name: str) -> None:
        """卸载指定版本。"""
        pass
