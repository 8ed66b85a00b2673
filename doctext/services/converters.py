"""
External converter fallback chain for HWP files.

Attempts run one after another, each inside its own uuid-named working
directory that is removed when the attempt ends:

1. headless office suite (soffice --convert-to docx, then pdf)
2. cloud conversion API (bearer API key, HWP -> PDF)
3. vendor conversion API (OAuth2 client credentials, HWP -> PDF or TXT)

An attempt that raises, times out or yields no text falls through to the
next one. API attempts without configured credentials are skipped.
"""
import asyncio
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
import structlog

from doctext.core.config import settings
from doctext.core.exceptions import ConversionError
from doctext.utils.file_utils import temporary_directory, unique_path, write_file, read_file
from .office_extractors import extract_by_format
from .quality import HWP_EXTRACTION_FAILED_MESSAGE

logger = structlog.get_logger()

JOB_DONE_STATES = {"done", "finished", "completed", "success", "succeeded"}
JOB_FAILED_STATES = {"failed", "error", "cancelled", "canceled"}


def extract_converted(data: bytes, fmt: str) -> str:
    """변환 결과 바이트에서 텍스트 추출 (docx/pdf/txt)"""
    return extract_by_format(data, fmt).strip()


class LibreOfficeConverter:
    """Convert through a headless office suite process."""

    name = "libreoffice"

    def __init__(
        self,
        binary: Optional[str] = None,
        timeout: Optional[float] = None,
        target_formats: Optional[List[str]] = None,
    ):
        self.binary = binary or settings.LIBREOFFICE_BINARY
        self.timeout = timeout if timeout is not None else settings.LIBREOFFICE_TIMEOUT
        self.target_formats = target_formats or list(settings.LIBREOFFICE_TARGET_FORMATS)

    async def convert(self, input_path: str, work_dir: str) -> str:
        """
        Convert the input file and extract text from the first produced output.

        Args:
            input_path: HWP file inside ``work_dir``
            work_dir: Scoped working directory for outputs

        Returns:
            Extracted text

        Raises:
            ConversionError: When no target format produced text
        """
        errors = []
        for fmt in self.target_formats:
            try:
                output_path = await self._run(input_path, work_dir, fmt)
                data = await read_file(output_path)
                text = await asyncio.to_thread(extract_converted, data, fmt)
            except ConversionError as e:
                errors.append(e.message)
                continue
            except Exception as e:
                errors.append(f"{fmt}: {e}")
                continue

            if text:
                logger.info("LibreOffice conversion successful", format=fmt, text_length=len(text))
                return text
            errors.append(f"{fmt}: empty text")

        raise ConversionError("; ".join(errors) or "no target formats", converter=self.name)

    async def _run(self, input_path: str, work_dir: str, fmt: str) -> str:
        cmd = [
            self.binary,
            "--headless",
            "--convert-to", fmt,
            "--outdir", work_dir,
            input_path,
        ]

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ConversionError(f"{fmt}: cannot start {self.binary}: {e}", converter=self.name)

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise ConversionError(f"{fmt}: timed out after {self.timeout}s", converter=self.name)
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        # 종료 코드가 0이어도 출력이 없을 수 있어 파일 존재 여부로 판단
        output_path = os.path.join(work_dir, f"{Path(input_path).stem}.{fmt}")
        if not os.path.exists(output_path):
            logger.warning("LibreOffice produced no output",
                           format=fmt,
                           returncode=process.returncode,
                           stderr=(stderr or b"").decode(errors="ignore")[:500])
            raise ConversionError(f"{fmt}: no output file", converter=self.name)
        return output_path


class ConversionAPIClient:
    """Shared response handling for conversion HTTP APIs.

    A conversion response is either the converted file itself or a JSON job
    handle. Job handles are polled until they report a download URL.
    """

    name = "conversion_api"

    def __init__(
        self,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        poll_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.CONVERSION_API_TIMEOUT
        self.poll_interval = poll_interval if poll_interval is not None else settings.CONVERSION_POLL_INTERVAL
        self.poll_timeout = poll_timeout if poll_timeout is not None else settings.CONVERSION_POLL_TIMEOUT
        self.transport = transport

    @property
    def configured(self) -> bool:
        raise NotImplementedError

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _resolve(self, client: httpx.AsyncClient, response: httpx.Response,
                       headers: Dict[str, str]) -> bytes:
        if response.status_code >= 400:
            raise ConversionError(f"HTTP {response.status_code} from conversion API", converter=self.name)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            if not response.content:
                raise ConversionError("empty conversion response", converter=self.name)
            return response.content

        job = response.json()
        return await asyncio.wait_for(self._poll(client, job, headers), timeout=self.poll_timeout)

    async def _poll(self, client: httpx.AsyncClient, job: Dict[str, Any], headers: Dict[str, str]) -> bytes:
        while True:
            status = str(job.get("status", "")).lower()
            download_url = job.get("download_url") or job.get("result_url")

            if status in JOB_FAILED_STATES:
                raise ConversionError(f"conversion job {status}: {job.get('message', '')}",
                                      converter=self.name)
            if download_url and (not status or status in JOB_DONE_STATES):
                result = await client.get(download_url, headers=headers)
                if result.status_code >= 400 or not result.content:
                    raise ConversionError(f"download failed: HTTP {result.status_code}",
                                          converter=self.name)
                return result.content

            status_url = job.get("status_url")
            if not status_url:
                raise ConversionError("job handle without status_url", converter=self.name)

            await asyncio.sleep(self.poll_interval)
            response = await client.get(status_url, headers=headers)
            if response.status_code >= 400:
                raise ConversionError(f"HTTP {response.status_code} while polling", converter=self.name)
            job = response.json()
            logger.debug("Conversion job polled", converter=self.name, status=job.get("status"))


class CloudConversionClient(ConversionAPIClient):
    """HWP -> PDF through a cloud conversion API authenticated with an API key."""

    name = "cloud_api"
    output_format = "pdf"

    def __init__(self, url: Optional[str] = None, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.url = url or settings.CLOUD_CONVERT_URL
        self.api_key = api_key or settings.CLOUD_CONVERT_API_KEY

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)

    async def convert(self, data: bytes, filename: str) -> Tuple[bytes, str]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        async with self._client() as client:
            response = await client.post(
                self.url,
                headers=headers,
                files={"file": (filename, data, "application/x-hwp")},
                data={"output_format": self.output_format},
            )
            return await self._resolve(client, response, headers), self.output_format


class VendorConversionClient(ConversionAPIClient):
    """HWP conversion through the vendor API (OAuth2 client credentials)."""

    name = "vendor_api"

    def __init__(
        self,
        token_url: Optional[str] = None,
        convert_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        output_format: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.token_url = token_url or settings.VENDOR_TOKEN_URL
        self.convert_url = convert_url or settings.VENDOR_CONVERT_URL
        self.client_id = client_id or settings.VENDOR_CLIENT_ID
        self.client_secret = client_secret or settings.VENDOR_CLIENT_SECRET
        self.output_format = output_format or settings.VENDOR_OUTPUT_FORMAT

    @property
    def configured(self) -> bool:
        return all((self.token_url, self.convert_url, self.client_id, self.client_secret))

    async def fetch_token(self, client: httpx.AsyncClient) -> str:
        response = await client.post(self.token_url, data={
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        })
        if response.status_code >= 400:
            raise ConversionError(f"token request failed: HTTP {response.status_code}", converter=self.name)

        token = response.json().get("access_token")
        if not token:
            raise ConversionError("token response without access_token", converter=self.name)
        return token

    async def convert(self, data: bytes, filename: str) -> Tuple[bytes, str]:
        async with self._client() as client:
            token = await self.fetch_token(client)
            headers = {"Authorization": f"Bearer {token}"}
            response = await client.post(
                self.convert_url,
                headers=headers,
                files={"file": (filename, data, "application/x-hwp")},
                data={"output_format": self.output_format},
            )
            return await self._resolve(client, response, headers), self.output_format


class ConverterChain:
    """Run the external converters in order until one yields text."""

    def __init__(
        self,
        libreoffice: Optional[LibreOfficeConverter] = None,
        cloud: Optional[CloudConversionClient] = None,
        vendor: Optional[VendorConversionClient] = None,
        work_dir: Optional[str] = None,
        attempt_timeout: Optional[float] = None,
    ):
        self.libreoffice = libreoffice or LibreOfficeConverter()
        self.cloud = cloud or CloudConversionClient()
        self.vendor = vendor or VendorConversionClient()
        self.work_dir = work_dir or settings.WORK_DIR
        self.attempt_timeout = attempt_timeout if attempt_timeout is not None else settings.CONVERTER_ATTEMPT_TIMEOUT

    def _attempts(self) -> List[Tuple[str, Callable[[bytes, str], Awaitable[str]]]]:
        return [
            (self.libreoffice.name, self._attempt_libreoffice),
            (self.cloud.name, lambda data, filename: self._attempt_api(self.cloud, data, filename)),
            (self.vendor.name, lambda data, filename: self._attempt_api(self.vendor, data, filename)),
        ]

    async def _attempt_libreoffice(self, data: bytes, filename: str) -> str:
        with temporary_directory(self.work_dir) as work_dir:
            input_path = unique_path(work_dir, filename or "document.hwp")
            await write_file(input_path, data)
            return await self.libreoffice.convert(input_path, work_dir)

    async def _attempt_api(self, client: ConversionAPIClient, data: bytes, filename: str) -> str:
        if not client.configured:
            raise ConversionError("not configured", converter=client.name)

        with temporary_directory(self.work_dir) as work_dir:
            converted, fmt = await client.convert(data, filename or "document.hwp")
            output_path = unique_path(work_dir, f"converted.{fmt}")
            await write_file(output_path, converted)
            data = await read_file(output_path)
            return await asyncio.to_thread(extract_converted, data, fmt)

    async def try_convert(self, data: bytes, filename: str) -> Optional[str]:
        """
        Run every converter attempt until one yields non-empty text.

        Returns:
            Extracted text, or None when every attempt failed
        """
        for name, attempt in self._attempts():
            try:
                text = await asyncio.wait_for(attempt(data, filename), timeout=self.attempt_timeout)
            except asyncio.TimeoutError:
                logger.warning("Converter attempt timed out", converter=name, timeout=self.attempt_timeout)
                continue
            except ConversionError as e:
                logger.info("Converter attempt failed", converter=name, reason=e.message)
                continue
            except Exception as e:
                logger.warning("Converter attempt error", converter=name, error=str(e))
                continue

            if text and text.strip():
                logger.info("Converter attempt succeeded", converter=name, text_length=len(text))
                return text
            logger.info("Converter attempt produced no text", converter=name)

        return None

    async def convert_and_extract(self, data: bytes, filename: str) -> str:
        """변환 체인 실행, 모두 실패하면 안내 메시지 반환"""
        text = await self.try_convert(data, filename)
        if text is None:
            return HWP_EXTRACTION_FAILED_MESSAGE
        return text
