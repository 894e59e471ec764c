"""
重试机制工具模块。

为压缩包下载提供指数退避重试，其余操作一律不重试。
"""

import random
import time
from typing import Any, Callable, Optional, TypeVar

import requests

from goswitch.utils.logger import get_logger

logger = get_logger()

T = TypeVar('T')

RETRYABLE_STATUS_CODES = frozenset({408, 429})


def is_retryable_error(exception: Exception) -> bool:
    """
    判断下载错误是否可重试。

    超时、连接中断以及 5xx / 408 / 429 响应视为临时性错误。

    参数:
        exception: 异常对象

    返回:
        可重试返回 True，否则返回 False
    """
    if isinstance(exception, requests.exceptions.HTTPError):
        response = exception.response
        if response is None:
            return False
        return response.status_code >= 500 or response.status_code in RETRYABLE_STATUS_CODES

    return isinstance(exception, (
        requests.exceptions.Timeout,
        requests.exceptions.ConnectionError,
        requests.exceptions.ChunkedEncodingError,
    ))


class RetryHandler:
    """
    重试处理器类。

    实现带随机抖动的指数退避策略。
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        backoff_factor: float = 2.0,
        jitter: bool = True,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        初始化重试处理器。

        参数:
            max_retries: 最大重试次数
            base_delay: 基础延迟时间（秒）
            max_delay: 最大延迟时间（秒）
            backoff_factor: 退避因子
            jitter: 是否添加随机抖动
            sleep: 等待函数，测试时可替换
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter
        self._sleep = sleep or time.sleep

    def _calculate_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.backoff_factor ** attempt), self.max_delay)
        if self.jitter:
            delay = delay * (0.5 + random.random() * 0.5)
        return delay

    def execute(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        执行函数，遇到临时性错误时自动重试。

        参数:
            func: 要执行的函数
            *args: 函数位置参数
            **kwargs: 函数关键字参数

        返回:
            函数执行结果

        抛出:
            不可重试的异常立即抛出；超过最大重试次数后抛出最后一次异常
        """
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if not is_retryable_error(e):
                    raise
                if attempt >= self.max_retries:
                    logger.error(f"已达到最大重试次数 {self.max_retries}，放弃重试")
                    raise

                delay = self._calculate_delay(attempt)
                attempt += 1
                logger.warning(
                    f"请求失败 (尝试 {attempt}/{self.max_retries + 1}): {e}，"
                    f"{delay:.2f} 秒后重试..."
                )
                self._sleep(delay)
