"""
go-switch 命令行接口模块。
"""

import argparse
import json
import logging
import os
import sys
from typing import Callable, List, Optional, TextIO

from goswitch import __version__
from goswitch.core.config_manager import ConfigManager
from goswitch.core.env_manager import EnvManager
from goswitch.core.platform_profile import PlatformProfile, resolve_platform
from goswitch.core.version_manager import EXIT, VersionManager
from goswitch.core.version_store import VersionStore
from goswitch.core import version_utils
from goswitch.errors import ConfigCorruptError, GoSwitchError
from goswitch.utils.input_validator import InputValidator
from goswitch.utils.logger import get_logger, log_dir_for, setup_logger

logger = get_logger()

SELECT_LABEL = "Choose You Want Switch Version"

SETTABLE_KEYS = {
    "go_switch_path": str,
    "go_env_file": str,
    "init": bool,
}


def create_parser() -> argparse.ArgumentParser:
    """
    创建并配置命令行参数解析器。

    返回:
        配置好的 ArgumentParser 实例
    """
    parser = argparse.ArgumentParser(
        prog="gos",
        description="go-switch - Go 版本管理器",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  gos switch                  交互式选择并切换 Go 版本
  gos use 1.21.5              切换到 Go 1.21.5
  gos list                    列出已安装的 Go 版本
  gos install 1.22.0          下载并安装 Go 1.22.0
  gos uninstall 1.20.3        卸载 Go 1.20.3
  gos config --set go_env_file=~/.go-switch/env.sh
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="启用详细输出",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="配置文件路径",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="命令",
        description="可用的 CLI 命令",
    )

    subparsers.add_parser(
        "switch",
        help="交互式选择并切换版本",
    )

    use_parser = subparsers.add_parser(
        "use",
        help="切换到指定版本",
    )
    use_parser.add_argument(
        "version",
        help="要切换到的版本",
    )

    list_parser = subparsers.add_parser(
        "list",
        help="列出已安装版本",
    )
    list_parser.add_argument(
        "--format",
        "-f",
        choices=["json", "simple"],
        default="simple",
        help="输出格式",
    )

    install_parser = subparsers.add_parser(
        "install",
        help="下载并安装指定版本",
    )
    install_parser.add_argument(
        "version",
        help="要安装的版本",
    )
    source_group = install_parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "--archive",
        "-a",
        type=str,
        default=None,
        help="使用本地安装包（.zip / .tar.gz / .tgz）",
    )
    source_group.add_argument(
        "--url",
        "-u",
        type=str,
        default=None,
        help="自定义下载地址",
    )
    install_parser.add_argument(
        "--force",
        action="store_true",
        help="覆盖已安装的同名版本",
    )

    uninstall_parser = subparsers.add_parser(
        "uninstall",
        help="卸载指定版本",
    )
    uninstall_parser.add_argument(
        "version",
        help="要卸载的版本",
    )

    config_parser = subparsers.add_parser(
        "config",
        help="显示或修改配置",
    )
    config_parser.add_argument(
        "--set",
        "-s",
        type=str,
        help="设置配置值（格式：key=value）",
    )

    return parser


def prompt_select(
    items: List[str],
    label: str = SELECT_LABEL,
    input_func: Optional[Callable[[str], str]] = None,
    output: Optional[TextIO] = None,
) -> str:
    """
    在终端中显示编号列表并读取用户选择。

    参数:
        items: 可选项，最后一项通常为 exit
        label: 提示文字
        input_func: 读取输入的函数，默认为内置 input
        output: 输出流，默认为标准输出

    返回:
        items 中的某一项；EOF 或 Ctrl-C 时返回 exit
    """
    out = output or sys.stdout
    print(f"{label}:", file=out)
    for index, item in enumerate(items, start=1):
        print(f"  {index}) {item}", file=out)

    while True:
        try:
            answer = (input_func or input)("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print(file=out)
            return EXIT

        if answer in items:
            return answer
        if answer.isdigit() and 1 <= int(answer) <= len(items):
            return items[int(answer) - 1]
        print(f"无效的选择: {answer}", file=out)


def run_cli(args: argparse.Namespace) -> int:
    """
    运行命令行接口。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码（0 表示成功）
    """
    if args.command is None:
        print("未指定命令。使用 --help 查看帮助信息。")
        return 1

    command_handlers = {
        "switch": handle_switch,
        "use": handle_use,
        "list": handle_list,
        "install": handle_install,
        "uninstall": handle_uninstall,
        "config": handle_config,
    }

    handler = command_handlers.get(args.command)
    if handler is None:
        print(f"未知命令: {args.command}")
        return 1

    try:
        profile = resolve_platform()
        _setup_logging(args, profile)
        return handler(args, profile)
    except ConfigCorruptError as e:
        logger.error(str(e))
        print(f"配置文件已损坏: {e}")
        print("请修复或删除该文件后重试。")
        return 1
    except GoSwitchError as e:
        logger.error(f"{args.command} 失败 ({e.kind.value}): {e}")
        print(f"错误: {e}")
        return 1


def _setup_logging(args: argparse.Namespace, profile: PlatformProfile) -> None:
    level = logging.DEBUG if args.verbose else logging.INFO
    # 不加 --verbose 时控制台只显示警告和错误
    console_level = level if args.verbose else logging.WARNING
    try:
        setup_logger(
            level=level,
            log_to_file=True,
            log_to_console=True,
            log_dir=log_dir_for(profile.root_path),
            console_level=console_level,
        )
    except OSError as e:
        setup_logger(level=level, log_to_console=True, console_level=console_level)
        logger.warning(f"无法创建日志文件: {e}")


def _get_managers(args: argparse.Namespace, profile: PlatformProfile):
    """
    获取管理器实例。

    返回:
        包含 ConfigManager、VersionStore、VersionManager 的元组
    """
    permissions = profile.permission_setter()
    config_manager = ConfigManager(profile.root_path, args.config, permissions)
    store = VersionStore.load(config_manager)
    env_manager = EnvManager(permissions)
    version_manager = VersionManager(store, profile, env_manager, permissions=permissions)
    return config_manager, store, version_manager


def _print_switched(result) -> None:
    print(f"已切换到 go {result.version}")
    print(f"GOROOT={result.target_root}")
    print("注意：需要重新打开终端或执行 source 命令才能使更改生效。")


def handle_switch(args: argparse.Namespace, profile: PlatformProfile) -> int:
    """
    处理 switch 命令：交互式选择版本并切换。
    """
    _, store, version_manager = _get_managers(args, profile)
    if not store.version_names():
        print("未找到已安装的 Go 版本，请先使用 gos install 安装。")
        return 0

    result = version_manager.switch(prompt_select)
    if not result.switched:
        return 0
    _print_switched(result)
    return 0


def handle_use(args: argparse.Namespace, profile: PlatformProfile) -> int:
    """
    处理 use 命令：切换到指定版本。
    """
    _, _, version_manager = _get_managers(args, profile)
    result = version_manager.switch_to(args.version)
    _print_switched(result)
    return 0


def handle_list(args: argparse.Namespace, profile: PlatformProfile) -> int:
    """
    处理 list 命令：列出已安装的版本。
    """
    _, store, version_manager = _get_managers(args, profile)
    versions = version_utils.sort_versions_desc(store.versions())
    current = version_manager.current_version()

    if args.format == "json":
        result = {
            "current": current.name if current else None,
            "go_root": store.active_root,
            "versions": [v.to_dict() for v in versions],
        }
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return 0

    if not versions:
        print("未找到已安装的 Go 版本")
        print(f"安装目录: {store.install_root}")
        return 0

    print("已安装版本:")
    for v in versions:
        marker = " *" if current and v.name == current.name else "  "
        print(f"{marker} {v.name}")
        if args.verbose:
            print(f"     路径: {v.path}")
    print(f"\n当前版本: {current.name if current else '未设置'}")
    return 0


def handle_install(args: argparse.Namespace, profile: PlatformProfile) -> int:
    """
    处理 install 命令：下载并安装指定版本。
    """
    _, _, version_manager = _get_managers(args, profile)
    print(f"正在安装 go {args.version}...")

    def progress(downloaded: int, total: int):
        if total <= 0:
            print(f"\r已下载 {downloaded} 字节", end="", flush=True)
            return
        percent = int(downloaded / total * 100)
        bar_len = 40
        filled = int(bar_len * percent / 100)
        bar = "=" * filled + "-" * (bar_len - filled)
        print(f"\r[{bar}] {percent}% ({downloaded}/{total} 字节)", end="", flush=True)

    installed = version_manager.install(
        args.version,
        archive=args.archive,
        url=args.url,
        progress_callback=progress,
        force=args.force,
    )
    print(f"\n成功安装 go {installed.name}: {installed.path}")
    return 0


def handle_uninstall(args: argparse.Namespace, profile: PlatformProfile) -> int:
    """
    处理 uninstall 命令：卸载指定版本。
    """
    _, _, version_manager = _get_managers(args, profile)
    version_manager.uninstall(args.version)
    print(f"成功卸载 go {args.version}")
    return 0


def handle_config(args: argparse.Namespace, profile: PlatformProfile) -> int:
    """
    处理 config 命令：显示或修改配置。
    """
    config_manager, store, _ = _get_managers(args, profile)

    if not args.set:
        print(json.dumps(store.config.to_dict(), indent=2, ensure_ascii=False))
        print(f"\n配置文件: {config_manager.config_file}")
        return 0

    key, _, value = args.set.partition("=")
    key = key.strip()
    if not key or not value:
        print("格式无效。请使用: key=value")
        return 1
    if key not in SETTABLE_KEYS:
        print(f"不支持修改的配置项: {key}")
        print(f"可修改的配置项: {', '.join(SETTABLE_KEYS)}")
        return 1

    if SETTABLE_KEYS[key] is bool:
        lowered = value.strip().lower()
        if lowered not in ("true", "false"):
            print(f"{key} 只能设置为 true 或 false")
            return 1
        parsed = lowered == "true"
    else:
        parsed = os.path.expanduser(value.strip())
        InputValidator.validate_path(parsed)

    setattr(store.config, key, parsed)
    store.save()
    print(f"已设置 {key} = {parsed}")
    return 0
