"""
日志模块。

所有模块共用名为 GoSwitch 的记录器。导入时只有 WARNING 级别的控制台输出，
CLI 解析出根目录后再调用 setup_logger 打开 <root>/logs/go-switch.log。
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

_logger: Optional[logging.Logger] = None

LOGGER_NAME = "GoSwitch"
LOG_DIR_NAME = "logs"
LOG_FILE_NAME = "go-switch.log"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(module)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5


def log_dir_for(root_path: Union[str, Path]) -> Path:
    """go-switch 根目录下的日志目录。"""
    return Path(root_path) / LOG_DIR_NAME


def _file_handler(log_dir: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def setup_logger(
    level: int = logging.INFO,
    log_to_file: bool = False,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
    console_level: Optional[int] = None,
    max_bytes: int = MAX_BYTES,
    backup_count: int = BACKUP_COUNT,
) -> logging.Logger:
    """
    配置 GoSwitch 记录器。

    每次调用都会关闭并替换已有的处理器。

    参数:
        level: 日志级别，默认为 INFO
        log_to_file: 是否输出到文件，需要同时提供 log_dir
        log_to_console: 是否输出到控制台
        log_dir: 日志文件目录
        console_level: 控制台级别，默认与 level 相同
        max_bytes: 单个日志文件最大字节数
        backup_count: 保留的备份文件数量

    返回:
        配置好的 Logger 实例

    抛出:
        OSError: 日志目录或文件无法创建
    """
    global _logger

    handlers = []
    if log_to_file and log_dir is not None:
        handlers.append((_file_handler(Path(log_dir), max_bytes, backup_count), level))
    if log_to_console:
        handlers.append((logging.StreamHandler(), level if console_level is None else console_level))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(min([level] + [handler_level for _, handler_level in handlers]))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler, handler_level in handlers:
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """
    获取日志记录器实例。

    尚未配置时只输出 WARNING 及以上级别到控制台。
    """
    if _logger is None:
        return setup_logger(level=logging.WARNING)
    return _logger
