"""
版本工具模块。

提供版本号解析和排序函数。
"""

import re
from typing import List, Tuple

from goswitch.core.config_manager import Version


def parse_version(version_str: str) -> Tuple[Tuple[int, ...], int, str]:
    """
    解析版本字符串为可比较的元组。

    正式版排在同号的 beta / rc 之后，如 1.22rc1 < 1.22 < 1.22.1。

    参数:
        version_str: 版本字符串，可带 go 前缀

    返回:
        (数字部分, 是否正式版, 预发布后缀)
    """
    text = version_str[2:] if version_str.startswith("go") else version_str
    match = re.match(r'^(\d+(?:\.\d+)*)(.*)$', text)
    if not match:
        return (0,), 0, text
    numbers = tuple(int(p) for p in match.group(1).split("."))
    suffix = match.group(2)
    return numbers, 0 if suffix else 1, suffix


def sort_versions_desc(versions: List[Version]) -> List[Version]:
    """
    按版本号降序排列版本列表。

    参数:
        versions: 版本列表

    返回:
        排序后的版本列表
    """
    return sorted(versions, key=lambda v: parse_version(v.name), reverse=True)
