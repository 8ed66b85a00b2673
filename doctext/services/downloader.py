"""
Size- and time-bounded document download for by-URL extraction.
"""
import posixpath
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

import httpx
import structlog

from doctext.core.config import settings
from doctext.core.exceptions import DownloadError, FileTooLargeError

logger = structlog.get_logger()


class DocumentDownloader:
    """Download a document over HTTP(S) into memory."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_size: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.DOWNLOAD_TIMEOUT
        self.max_size = max_size if max_size is not None else settings.MAX_UPLOAD_SIZE
        self.transport = transport

    async def download(self, url: str) -> Tuple[bytes, str]:
        """
        Download ``url``.

        Returns:
            (content, filename derived from the URL path)

        Raises:
            DownloadError: Invalid URL, HTTP error status or network failure
            FileTooLargeError: Body larger than the upload limit
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise DownloadError(url, "http 또는 https URL만 지원합니다")

        filename = posixpath.basename(unquote(parsed.path)) or "download"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport,
                                         follow_redirects=True) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code >= 400:
                        raise DownloadError(url, f"HTTP {response.status_code}")

                    declared = response.headers.get("content-length")
                    if declared and declared.isdigit() and int(declared) > self.max_size:
                        raise FileTooLargeError(int(declared), self.max_size)

                    chunks = []
                    received = 0
                    async for chunk in response.aiter_bytes():
                        received += len(chunk)
                        if received > self.max_size:
                            raise FileTooLargeError(received, self.max_size)
                        chunks.append(chunk)
        except httpx.HTTPError as e:
            logger.warning("Download failed", url=url, error=str(e))
            raise DownloadError(url, type(e).__name__)

        logger.info("Downloaded document", url=url, size=received, filename=filename)
        return b"".join(chunks), filename


def get_downloader() -> DocumentDownloader:
    return DocumentDownloader()
