"""
测试共享夹具。
"""

import gzip
import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from goswitch.core.config_manager import Config, ConfigManager, Version
from goswitch.core.env_manager import EnvManager
from goswitch.core.platform_profile import resolve_platform
from goswitch.core.version_manager import VersionManager
from goswitch.core.version_store import VersionStore
from goswitch.utils.permission_manager import NoopPermissions

GO_FILES = {
    "go/VERSION": b"go1.22.0\n",
    "go/bin/go": b"#!/bin/sh\necho go\n",
    "go/src/runtime/proc.go": b"package runtime\n",
}


class FakeShellRunner:
    """记录调用参数并返回预设退出码的 shell 执行器。"""

    def __init__(self, returncode: int = 0, error: Exception = None):
        self.returncode = returncode
        self.error = error
        self.calls = []

    def __call__(self, args):
        self.calls.append(list(args))
        if self.error is not None:
            raise self.error
        return self.returncode


def build_zip(path: Path, files: dict, dirs=(), mode: int = 0o644) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name in dirs:
            info = zipfile.ZipInfo(name.rstrip("/") + "/")
            info.external_attr = (0o40755 << 16) | 0x10
            zf.writestr(info, b"")
        for name, data in files.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = (0o100000 | mode) << 16
            zf.writestr(info, data)
    return path


def build_tar_gz(path: Path, files: dict, dirs=(), mode: int = 0o644, links=()) -> Path:
    with tarfile.open(path, "w:gz") as tar:
        for name in dirs:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tar.addfile(info, io.BytesIO(data))
        for name, target in links:
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)
    return path


def build_gzip(path: Path, data: bytes) -> Path:
    with gzip.open(path, "wb") as f:
        f.write(data)
    return path


def read_tree(root: Path) -> dict:
    """返回目录下所有文件的相对路径与内容。"""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def linux_profile(home_dir: Path):
    return resolve_platform(
        system="Linux",
        environ={"HOME": str(home_dir), "SHELL": "/bin/zsh"},
        machine="x86_64",
    )


@pytest.fixture
def shell_runner() -> FakeShellRunner:
    return FakeShellRunner()


@pytest.fixture
def config_manager(linux_profile) -> ConfigManager:
    return ConfigManager(linux_profile.root_path, permissions=NoopPermissions())


@pytest.fixture
def store(config_manager: ConfigManager) -> VersionStore:
    """包含 1.21 与 1.20 两个版本并已保存到磁盘的存储。"""
    root = config_manager.root_path
    config = Config(
        go_switch_path=str(root),
        local_gos=[
            Version(name="1.21", path=str(root / "gos" / "1.21")),
            Version(name="1.20", path=str(root / "gos" / "1.20")),
        ],
        go_env_file=str(root / "env.sh"),
    )
    version_store = VersionStore(config, config_manager)
    version_store.save()
    return version_store


def make_version_manager(store, profile, shell_runner, download_manager=None) -> VersionManager:
    env_manager = EnvManager(NoopPermissions(), shell_runner=shell_runner)
    return VersionManager(
        store,
        profile,
        env_manager,
        download_manager=download_manager,
        permissions=NoopPermissions(),
    )


@pytest.fixture
def version_manager(store, linux_profile, shell_runner) -> VersionManager:
    return make_version_manager(store, linux_profile, shell_runner)
