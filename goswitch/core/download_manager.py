"""
下载管理模块。

提供 Go 安装包的下载功能。
"""

from pathlib import Path
from typing import Callable, Optional, Union

import requests

from goswitch.core.platform_profile import PlatformProfile
from goswitch.errors import DownloadError
from goswitch.utils.logger import get_logger
from goswitch.utils.retry import RetryHandler

logger = get_logger()

PathLike = Union[str, Path]
ProgressCallback = Callable[[int, int], None]

GO_DOWNLOAD_URL = "https://go.dev/dl/"


class DownloadManager:
    """
    下载管理器类。

    负责构建下载地址并以流式方式下载安装包。
    """

    def __init__(
        self,
        base_url: str = GO_DOWNLOAD_URL,
        retry_handler: Optional[RetryHandler] = None,
        timeout: int = 300,
        chunk_size: int = 8192,
    ):
        """
        初始化下载管理器。

        参数:
            base_url: 下载源地址
            retry_handler: 重试处理器
            timeout: 请求超时（秒）
            chunk_size: 每次写入的块大小
        """
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.retry_handler = retry_handler or RetryHandler()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def build_download_url(self, version: str, profile: PlatformProfile) -> str:
        """
        根据版本号和平台构建下载 URL。

        参数:
            version: 版本号，如 1.21.5
            profile: 当前平台

        返回:
            下载 URL
        """
        name = version if version.startswith("go") else f"go{version}"
        return f"{self.base_url}{name}.{profile.os_kind.value}-{profile.arch}.{profile.archive_ext}"

    def download(
        self,
        url: str,
        dest: PathLike,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        下载文件到本地路径。

        参数:
            url: 下载 URL
            dest: 保存路径
            progress_callback: 下载进度回调函数 (已下载字节, 总字节)

        返回:
            保存路径

        抛出:
            DownloadError: 请求失败、服务器未返回 200 或写入失败
        """
        target = Path(dest)
        logger.info(f"正在从 {url} 下载")

        def _do_download():
            response = requests.get(url, stream=True, timeout=self.timeout)
            response.raise_for_status()
            return response

        try:
            response = self.retry_handler.execute(_do_download)
        except requests.exceptions.RequestException as e:
            logger.error(f"下载 {url} 失败: {e}")
            raise DownloadError(f"下载 {url} 失败: {e}") from e

        total_size = int(response.headers.get("content-length", 0) or 0)
        downloaded = 0
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with response, open(target, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)
                    if progress_callback:
                        progress_callback(downloaded, total_size)
        except (requests.exceptions.RequestException, OSError) as e:
            logger.error(f"下载 {url} 中断: {e}")
            raise DownloadError(f"下载 {url} 中断: {e}") from e

        logger.info(f"下载完成: {target} ({downloaded} 字节)")
        return target
