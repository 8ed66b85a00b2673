"""
External converter chain tests.
"""
import asyncio
import os
import stat
import threading
import time
from urllib.parse import parse_qs

import httpx
import pytest

from doctext.core.exceptions import ConversionError
from doctext.services.converters import (
    CloudConversionClient,
    ConverterChain,
    LibreOfficeConverter,
    VendorConversionClient,
)
from doctext.services.quality import HWP_EXTRACTION_FAILED_MESSAGE

FAKE_SOFFICE = """#!/bin/sh
outdir=""
fmt=""
while [ $# -gt 1 ]; do
  case "$1" in
    --convert-to) fmt="$2"; shift ;;
    --outdir) outdir="$2"; shift ;;
  esac
  shift
done
name=$(basename "$1")
printf '변환기로 추출한 한글 문서 본문입니다' > "$outdir/${name%.*}.$fmt"
"""


def write_script(tmp_path, name: str, body: str) -> str:
    path = tmp_path / name
    path.write_text(body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return str(path)


def unconfigured_chain(libreoffice, work_dir, attempt_timeout=30.0) -> ConverterChain:
    return ConverterChain(
        libreoffice=libreoffice,
        cloud=CloudConversionClient(url=None, api_key=None),
        vendor=VendorConversionClient(token_url=None, convert_url=None, client_id=None, client_secret=None),
        work_dir=work_dir,
        attempt_timeout=attempt_timeout,
    )


class HangingConverter:
    name = "hanging"

    async def convert(self, input_path, work_dir):
        await asyncio.sleep(60)


class TestLibreOfficeConverter:
    @pytest.mark.asyncio
    async def test_missing_binary(self, tmp_path):
        converter = LibreOfficeConverter(binary=str(tmp_path / "no-such-soffice"), timeout=5)
        (tmp_path / "in.hwp").write_bytes(b"data")

        with pytest.raises(ConversionError):
            await converter.convert(str(tmp_path / "in.hwp"), str(tmp_path))

    @pytest.mark.asyncio
    async def test_exit_zero_without_output_is_failure(self, tmp_path):
        binary = write_script(tmp_path, "soffice", "#!/bin/sh\nexit 0\n")
        converter = LibreOfficeConverter(binary=binary, timeout=5)
        (tmp_path / "in.hwp").write_bytes(b"data")

        with pytest.raises(ConversionError) as exc_info:
            await converter.convert(str(tmp_path / "in.hwp"), str(tmp_path))
        assert "no output file" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, tmp_path):
        binary = write_script(tmp_path, "soffice", "#!/bin/sh\nexec sleep 30\n")
        converter = LibreOfficeConverter(binary=binary, timeout=0.3, target_formats=["pdf"])
        (tmp_path / "in.hwp").write_bytes(b"data")

        started = time.monotonic()
        with pytest.raises(ConversionError) as exc_info:
            await converter.convert(str(tmp_path / "in.hwp"), str(tmp_path))

        assert "timed out" in exc_info.value.message
        assert time.monotonic() - started < 10

    @pytest.mark.asyncio
    async def test_output_file_is_extracted(self, tmp_path):
        binary = write_script(tmp_path, "soffice", FAKE_SOFFICE)
        converter = LibreOfficeConverter(binary=binary, timeout=5, target_formats=["txt"])
        (tmp_path / "in.hwp").write_bytes(b"data")

        text = await converter.convert(str(tmp_path / "in.hwp"), str(tmp_path))

        assert text == "변환기로 추출한 한글 문서 본문입니다"

    @pytest.mark.asyncio
    async def test_output_extraction_runs_in_worker_thread(self, tmp_path, monkeypatch):
        binary = write_script(tmp_path, "soffice", FAKE_SOFFICE)
        converter = LibreOfficeConverter(binary=binary, timeout=5, target_formats=["txt"])
        (tmp_path / "in.hwp").write_bytes(b"data")
        threads = []

        def recording_extract(data, fmt):
            threads.append(threading.get_ident())
            return data.decode("utf-8")

        monkeypatch.setattr("doctext.services.converters.extract_converted", recording_extract)

        text = await converter.convert(str(tmp_path / "in.hwp"), str(tmp_path))

        assert text == "변환기로 추출한 한글 문서 본문입니다"
        assert threads and threads[0] != threading.get_ident()


class TestConversionClients:
    @pytest.mark.asyncio
    async def test_cloud_client_sends_bearer_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, content=b"%PDF-converted")

        client = CloudConversionClient(url="https://convert.test/hwp", api_key="test-key",
                                       transport=httpx.MockTransport(handler))

        data, fmt = await client.convert(b"hwp-bytes", "a.hwp")

        assert (data, fmt) == (b"%PDF-converted", "pdf")
        assert seen["auth"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_cloud_client_failed_job(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "failed", "message": "bad input"})

        client = CloudConversionClient(url="https://convert.test/hwp", api_key="test-key",
                                       transport=httpx.MockTransport(handler))

        with pytest.raises(ConversionError):
            await client.convert(b"hwp-bytes", "a.hwp")

    @pytest.mark.asyncio
    async def test_vendor_oauth_flow_with_polling(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            if request.url.path == "/oauth/token":
                form = parse_qs(request.content.decode())
                assert form["grant_type"] == ["client_credentials"]
                assert form["client_id"] == ["client-id"]
                return httpx.Response(200, json={"access_token": "issued-token"})

            assert request.headers["Authorization"] == "Bearer issued-token"
            if request.url.path == "/convert":
                return httpx.Response(200, json={"status": "processing",
                                                  "status_url": "https://vendor.test/jobs/1"})
            if request.url.path == "/jobs/1":
                return httpx.Response(200, json={"status": "done",
                                                  "download_url": "https://vendor.test/files/1"})
            return httpx.Response(200, content="벤더 변환 결과 텍스트입니다".encode("utf-8"))

        client = VendorConversionClient(
            token_url="https://vendor.test/oauth/token",
            convert_url="https://vendor.test/convert",
            client_id="client-id",
            client_secret="client-secret",
            output_format="txt",
            poll_interval=0,
            transport=httpx.MockTransport(handler),
        )

        data, fmt = await client.convert(b"hwp-bytes", "a.hwp")

        assert fmt == "txt"
        assert data.decode("utf-8") == "벤더 변환 결과 텍스트입니다"
        assert calls == ["/oauth/token", "/convert", "/jobs/1", "/files/1"]

    @pytest.mark.asyncio
    async def test_vendor_token_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "invalid_client"})

        client = VendorConversionClient(
            token_url="https://vendor.test/oauth/token",
            convert_url="https://vendor.test/convert",
            client_id="client-id",
            client_secret="wrong",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(ConversionError):
            await client.convert(b"hwp-bytes", "a.hwp")


class TestConverterChain:
    @pytest.mark.asyncio
    async def test_all_failing_returns_message_and_cleans_up(self, tmp_path):
        work_dir = str(tmp_path / "work")
        chain = unconfigured_chain(LibreOfficeConverter(binary=str(tmp_path / "missing")), work_dir)

        assert await chain.try_convert(b"\x00" * 10, "a.hwp") is None
        assert await chain.convert_and_extract(b"\x00" * 10, "a.hwp") == HWP_EXTRACTION_FAILED_MESSAGE
        assert os.listdir(work_dir) == []

    @pytest.mark.asyncio
    async def test_libreoffice_success(self, tmp_path):
        work_dir = str(tmp_path / "work")
        binary = write_script(tmp_path, "soffice", FAKE_SOFFICE)
        chain = unconfigured_chain(LibreOfficeConverter(binary=binary, target_formats=["txt"]), work_dir)

        text = await chain.convert_and_extract(b"hwp", "보고서.hwp")

        assert text == "변환기로 추출한 한글 문서 본문입니다"
        assert os.listdir(work_dir) == []

    @pytest.mark.asyncio
    async def test_hanging_attempt_is_bounded(self, tmp_path):
        work_dir = str(tmp_path / "work")
        chain = unconfigured_chain(HangingConverter(), work_dir, attempt_timeout=0.2)

        started = time.monotonic()
        assert await chain.try_convert(b"hwp", "a.hwp") is None
        assert time.monotonic() - started < 5
        assert os.listdir(work_dir) == []

    @pytest.mark.asyncio
    async def test_falls_through_to_vendor(self, tmp_path):
        work_dir = str(tmp_path / "work")

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/token":
                return httpx.Response(200, json={"access_token": "t"})
            return httpx.Response(200, content="벤더 API로 변환된 본문".encode("utf-8"))

        chain = ConverterChain(
            libreoffice=LibreOfficeConverter(binary=str(tmp_path / "missing")),
            cloud=CloudConversionClient(url=None, api_key=None),
            vendor=VendorConversionClient(
                token_url="https://vendor.test/token",
                convert_url="https://vendor.test/convert",
                client_id="id",
                client_secret="secret",
                output_format="txt",
                transport=httpx.MockTransport(handler),
            ),
            work_dir=work_dir,
        )

        assert await chain.try_convert(b"hwp", "a.hwp") == "벤더 API로 변환된 본문"
        assert os.listdir(work_dir) == []
