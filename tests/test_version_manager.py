"""
版本管理器测试。
"""

import hashlib
import json
import shutil
from pathlib import Path

import pytest

from conftest import GO_FILES, FakeShellRunner, build_tar_gz, make_version_manager, read_tree
from goswitch.core.platform_profile import resolve_platform
from goswitch.core.version_manager import EXIT, SwitchState
from goswitch.errors import (
    EnvPatchError,
    ExtractError,
    InputValidationError,
    NotSupportedPlatformError,
    ShellReloadError,
    VersionInUseError,
    VersionManagerError,
    VersionNotFoundError,
)


def file_digest(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def saved_config(store) -> dict:
    return json.loads(store.config_manager.config_file.read_text(encoding="utf-8"))


class FakeDownloadManager:
    """把预先构建的压缩包复制到目标路径的下载管理器。"""

    def __init__(self, archive: Path):
        self.archive = archive
        self.calls = []

    def build_download_url(self, version, profile):
        return f"https://dl.example.test/go{version}.{profile.os_kind.value}-{profile.arch}.tar.gz"

    def download(self, url, dest, progress_callback=None):
        self.calls.append((url, Path(dest)))
        shutil.copyfile(self.archive, dest)
        if progress_callback:
            size = Path(dest).stat().st_size
            progress_callback(size, size)
        return Path(dest)


class TestSwitchSelection:
    """版本选择测试。"""

    def test_exit_has_no_side_effects(self, version_manager, store, home_dir):
        config_file = store.config_manager.config_file
        before = file_digest(config_file)
        offered = []

        def selector(items):
            offered.extend(items)
            return EXIT

        result = version_manager.switch(selector)

        assert result.switched is False
        assert result.states == [SwitchState.IDLE]
        assert offered == ["1.21", "1.20", EXIT]
        assert file_digest(config_file) == before
        assert not Path(store.env_file).exists()
        assert not (home_dir / ".zshrc").exists()

    def test_selected_version_is_switched(self, version_manager):
        result = version_manager.switch(lambda items: items[1])

        assert result.switched is True
        assert result.version == "1.20"


class TestSwitchTo:
    """切换流程测试。"""

    def test_first_switch(self, version_manager, store, home_dir, shell_runner):
        result = version_manager.switch_to("1.21")

        go_root = str(store.install_root / "1.21")
        assert result.target_root == go_root
        assert result.states == [
            SwitchState.IDLE,
            SwitchState.VERSION_CHOSEN,
            SwitchState.PLATFORM_CHECKED,
            SwitchState.ENVIRONMENT_PATCHED,
            SwitchState.CONFIG_PERSISTED,
            SwitchState.IDLE,
        ]
        assert store.active_root == go_root
        assert Path(store.env_file).read_text().splitlines() == [
            f"export GOROOT={go_root}",
            "export PATH=$PATH:$GOROOT/bin",
        ]
        assert (home_dir / ".zshrc").read_text().splitlines() == [f"source {store.env_file}"]
        # .zshrc 原本不存在，不需要重新加载
        assert shell_runner.calls == []

        data = saved_config(store)
        assert data["go_root"] == go_root
        assert data["init"] is True

    def test_second_switch_only_rewrites_env_file(self, version_manager, store, home_dir, shell_runner):
        version_manager.switch_to("1.21")
        rc_before = (home_dir / ".zshrc").read_bytes()

        version_manager.switch_to("1.20")

        go_root = str(store.install_root / "1.20")
        assert (home_dir / ".zshrc").read_bytes() == rc_before
        assert Path(store.env_file).read_text().splitlines()[0] == f"export GOROOT={go_root}"
        assert saved_config(store)["go_root"] == go_root
        assert shell_runner.calls == []

    def test_reloads_existing_shell_config(self, version_manager, store, home_dir, shell_runner):
        rc = home_dir / ".zshrc"
        rc.write_text("export EDITOR=vim\n")

        version_manager.switch_to("1.21")

        assert shell_runner.calls == [["zsh", "-c", f"source {rc}"]]
        assert rc.read_text().splitlines() == ["export EDITOR=vim", f"source {store.env_file}"]

    def test_non_utf8_shell_config(self, version_manager, store, home_dir):
        rc = home_dir / ".zshrc"
        original = b"# caf\xe9 latin-1 comment\nexport EDITOR=vim\n"
        rc.write_bytes(original)

        version_manager.switch_to("1.21")

        assert rc.read_bytes() == original + f"source {store.env_file}\n".encode()
        assert saved_config(store)["init"] is True

    def test_unknown_version(self, version_manager, store):
        before = file_digest(store.config_manager.config_file)

        with pytest.raises(VersionNotFoundError):
            version_manager.switch_to("1.99")
        assert file_digest(store.config_manager.config_file) == before

    def test_windows_is_rejected_before_writes(self, store, shell_runner, home_dir):
        profile = resolve_platform(
            system="Windows", environ={"USERPROFILE": "C:\\Users\\bob"}, machine="AMD64",
        )
        manager = make_version_manager(store, profile, shell_runner)
        before = file_digest(store.config_manager.config_file)

        with pytest.raises(NotSupportedPlatformError):
            manager.switch_to("1.21")

        assert file_digest(store.config_manager.config_file) == before
        assert not Path(store.env_file).exists()
        assert store.active_root == ""

    def test_env_file_is_directory(self, version_manager, store):
        Path(store.env_file).mkdir(parents=True)
        before = file_digest(store.config_manager.config_file)

        with pytest.raises(EnvPatchError):
            version_manager.switch_to("1.21")

        assert file_digest(store.config_manager.config_file) == before
        assert saved_config(store)["go_root"] == ""

    def test_reload_failure_keeps_config(self, store, linux_profile, home_dir):
        (home_dir / ".zshrc").write_text("exit 1\n")
        manager = make_version_manager(store, linux_profile, FakeShellRunner(returncode=1))
        before = file_digest(store.config_manager.config_file)

        with pytest.raises(ShellReloadError):
            manager.switch_to("1.21")

        assert file_digest(store.config_manager.config_file) == before
        assert "source" not in (home_dir / ".zshrc").read_text()

    def test_unknown_shell_skips_startup_file(self, store, home_dir, shell_runner):
        profile = resolve_platform(
            system="Linux",
            environ={"HOME": str(home_dir), "SHELL": "/usr/bin/fish"},
            machine="x86_64",
        )
        manager = make_version_manager(store, profile, shell_runner)

        manager.switch_to("1.21")

        assert Path(store.env_file).exists()
        assert not (home_dir / ".zshrc").exists()
        assert not (home_dir / ".bashrc").exists()
        data = saved_config(store)
        assert data["init"] is False
        assert data["go_root"] == str(store.install_root / "1.21")


class TestInstall:
    """安装测试。"""

    def test_install_from_local_archive(self, version_manager, store, tmp_path):
        archive = build_tar_gz(tmp_path / "go1.22.0.linux-amd64.tar.gz", GO_FILES)

        installed = version_manager.install("1.22.0", archive=str(archive))

        target = store.install_root / "1.22.0"
        assert installed.path == str(target)
        assert read_tree(target) == {
            "VERSION": GO_FILES["go/VERSION"],
            "bin/go": GO_FILES["go/bin/go"],
            "src/runtime/proc.go": GO_FILES["go/src/runtime/proc.go"],
        }
        assert not any(p.name.startswith(".staging-") for p in store.install_root.iterdir())
        assert "1.22.0" in [v["version"] for v in saved_config(store)["local_gos"]]

    def test_duplicate_requires_force(self, version_manager, store, tmp_path):
        first = build_tar_gz(tmp_path / "a.tar.gz", {"go/VERSION": b"old"})
        second = build_tar_gz(tmp_path / "b.tar.gz", {"go/VERSION": b"new"})
        version_manager.install("1.22.0", archive=str(first))

        with pytest.raises(VersionManagerError):
            version_manager.install("1.22.0", archive=str(second))

        version_manager.install("1.22.0", archive=str(second), force=True)
        assert (store.install_root / "1.22.0" / "VERSION").read_bytes() == b"new"
        assert store.version_names().count("1.22.0") == 1

    def test_force_refuses_active_version(self, version_manager, store, tmp_path):
        archive = build_tar_gz(tmp_path / "go.tar.gz", {"go/VERSION": b"v"})
        version_manager.switch_to("1.21")

        with pytest.raises(VersionInUseError):
            version_manager.install("1.21", archive=str(archive), force=True)

    @pytest.mark.parametrize("name", ["../evil", "", "a/b"])
    def test_invalid_version_name(self, version_manager, tmp_path, name):
        archive = build_tar_gz(tmp_path / "go.tar.gz", {"go/VERSION": b"v"})

        with pytest.raises(InputValidationError):
            version_manager.install(name, archive=str(archive))

    def test_install_downloads_archive(self, store, linux_profile, shell_runner, tmp_path):
        downloader = FakeDownloadManager(build_tar_gz(tmp_path / "src.tar.gz", GO_FILES))
        manager = make_version_manager(store, linux_profile, shell_runner, download_manager=downloader)
        progress = []

        manager.install("1.22.0", progress_callback=lambda done, total: progress.append((done, total)))

        url, dest = downloader.calls[0]
        assert url == "https://dl.example.test/go1.22.0.linux-amd64.tar.gz"
        assert dest == store.install_root / "go1.22.0.linux-amd64.tar.gz"
        assert not dest.exists()
        assert progress and progress[-1][0] == progress[-1][1]
        assert (store.install_root / "1.22.0" / "VERSION").read_bytes() == GO_FILES["go/VERSION"]

    def test_corrupt_archive_is_not_registered(self, version_manager, store, tmp_path):
        archive = tmp_path / "go.tar.gz"
        archive.write_bytes(b"not gzip")

        with pytest.raises(ExtractError):
            version_manager.install("1.22.0", archive=str(archive))
        assert store.find_version("1.22.0") is None
        assert "1.22.0" not in [v["version"] for v in saved_config(store)["local_gos"]]


class TestUninstall:
    """卸载测试。"""

    def test_active_version_cannot_be_removed(self, version_manager, store):
        version_manager.switch_to("1.21")

        with pytest.raises(VersionInUseError):
            version_manager.uninstall("1.21")
        assert "1.21" in store.version_names()

    def test_removes_directory_and_entry(self, version_manager, store):
        target = store.install_root / "1.20"
        (target / "bin").mkdir(parents=True)
        (target / "bin" / "go").write_text("go")

        version_manager.uninstall("1.20")

        assert not target.exists()
        assert store.version_names() == ["1.21"]
        assert [v["version"] for v in saved_config(store)["local_gos"]] == ["1.21"]

    def test_unknown_version(self, version_manager):
        with pytest.raises(VersionNotFoundError):
            version_manager.uninstall("1.99")
