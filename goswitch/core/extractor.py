"""
解压模块。

根据文件后缀选择解压方式，支持 zip、tar.gz 和单文件 gzip。
"""

import gzip
import os
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import Optional, Union

from goswitch.errors import ExtractError, UnsupportedFormatError
from goswitch.utils.logger import get_logger
from goswitch.utils.permission_manager import NoopPermissions, PermissionSetter, ensure_dir

logger = get_logger()

PathLike = Union[str, Path]

ZIP_SUFFIXES = (".zip",)
TAR_GZ_SUFFIXES = (".tar.gz", ".tgz")
GZIP_SUFFIXES = (".gzip", ".gz")

COPY_BUFSIZE = 64 * 1024


def detect_format(source: PathLike) -> str:
    """
    根据文件后缀判断压缩包格式。

    参数:
        source: 压缩包路径

    返回:
        "zip"、"tar.gz" 或 "gzip"

    抛出:
        UnsupportedFormatError: 后缀无法识别
    """
    name = os.fspath(source).lower()
    if name.endswith(ZIP_SUFFIXES):
        return "zip"
    if name.endswith(TAR_GZ_SUFFIXES):
        return "tar.gz"
    if name.endswith(GZIP_SUFFIXES):
        return "gzip"
    raise UnsupportedFormatError(f"不支持的文件类型: {source}")


def extract(
    source: PathLike,
    dest_dir: PathLike,
    permissions: Optional[PermissionSetter] = None,
) -> Path:
    """
    解压文件到指定目录。

    中途出错立即停止，已写入的文件不会回滚；重复解压会覆盖同名文件。

    参数:
        source: 压缩包路径
        dest_dir: 目标目录
        permissions: 新建目录的权限策略

    返回:
        目标目录路径

    抛出:
        UnsupportedFormatError: 后缀无法识别，此时不写入任何文件
        ExtractError: 读取或写入失败
    """
    fmt = detect_format(source)
    permissions = permissions or NoopPermissions()
    dest = Path(dest_dir)
    logger.info(f"正在解压 {source} 到 {dest}")

    try:
        ensure_dir(dest, permissions)
        if fmt == "zip":
            _unzip(Path(source), dest, permissions)
        elif fmt == "tar.gz":
            _untar_gz(Path(source), dest, permissions)
        else:
            _ungzip(Path(source), dest)
    except ExtractError:
        raise
    except (OSError, EOFError, zlib.error, zipfile.BadZipFile, tarfile.TarError) as e:
        logger.error(f"解压 {source} 失败: {e}")
        raise ExtractError(f"解压 {source} 失败: {e}") from e

    logger.info(f"解压完成: {dest}")
    return dest


def _safe_join(base: Path, name: str) -> Path:
    base_abs = os.path.abspath(base)
    joined = os.path.abspath(os.path.join(base_abs, name))
    if joined != base_abs and not joined.startswith(base_abs.rstrip(os.sep) + os.sep):
        raise ExtractError(f"压缩包包含非法路径: {name}")
    return Path(joined)


def _apply_mode(path: Path, mode: int) -> None:
    # 尽力而为：没有 POSIX 权限位的平台上 chmod 只影响只读标记
    if not mode:
        return
    try:
        os.chmod(path, mode & 0o7777)
    except OSError as e:
        logger.debug(f"设置权限失败 {path}: {e}")


def _unzip(source: Path, dest: Path, permissions: PermissionSetter) -> None:
    with zipfile.ZipFile(source, "r") as zf:
        for member in zf.infolist():
            target = _safe_join(dest, member.filename)
            mode = (member.external_attr >> 16) & 0o7777
            if member.is_dir():
                ensure_dir(target, permissions)
                continue

            ensure_dir(target.parent, permissions)
            with zf.open(member, "r") as src, open(target, "wb") as out:
                shutil.copyfileobj(src, out, COPY_BUFSIZE)
            _apply_mode(target, mode)


def _untar_gz(source: Path, dest: Path, permissions: PermissionSetter) -> None:
    with tarfile.open(source, "r|gz") as tar:
        for member in tar:
            target = _safe_join(dest, member.name)
            if member.isdir():
                ensure_dir(target, permissions)
            elif member.isfile():
                ensure_dir(target.parent, permissions)
                src = tar.extractfile(member)
                if src is None:
                    raise ExtractError(f"无法读取压缩包条目: {member.name}")
                with src, open(target, "wb") as out:
                    shutil.copyfileobj(src, out, COPY_BUFSIZE)
                _apply_mode(target, member.mode)
            else:
                logger.warning(f"无法识别的文件类型: {member.name} ({member.type!r})，已跳过")


def _ungzip(source: Path, dest: Path) -> None:
    name = source.name
    for suffix in GZIP_SUFFIXES:
        if name.lower().endswith(suffix):
            name = name[: -len(suffix)]
            break
    target = dest / (name or "out")

    with gzip.open(source, "rb") as src, open(target, "wb") as out:
        shutil.copyfileobj(src, out, COPY_BUFSIZE)
