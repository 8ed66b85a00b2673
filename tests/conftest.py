"""
Pytest configuration and fixtures.
"""
import io
import struct
import zipfile
from typing import Generator

import olefile
import pytest
from fastapi.testclient import TestClient

from doctext.core.config import settings
from doctext.main import app

KOREAN_PARAGRAPH = (
    "이 문서는 지방자치단체의 예산 편성 기준을 설명합니다. "
    "각 부서는 다음 회계연도의 사업 계획을 제출해야 합니다. "
    "제출된 계획은 예산 심의 위원회에서 검토됩니다."
)


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """업로드/작업 디렉토리를 테스트별 임시 경로로 격리"""
    upload_dir = tmp_path / "uploads"
    work_dir = tmp_path / "work"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(upload_dir))
    monkeypatch.setattr(settings, "WORK_DIR", str(work_dir))
    return upload_dir, work_dir


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def korean_text() -> str:
    return KOREAN_PARAGRAPH


def make_zip(members: dict) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def make_hwpx(paragraphs) -> bytes:
    """Build a minimal HWPX container with a legacy Contents.xml body."""
    body = "".join(f"<P>{p}</P>" for p in paragraphs)
    contents = f'<?xml version="1.0" encoding="UTF-8"?><HWPML><BODY><SECTION>{body}</SECTION></BODY></HWPML>'
    return make_zip({
        "mimetype": "application/hwp+zip",
        "Contents.xml": contents.encode("utf-8"),
    })


@pytest.fixture
def hwpx_factory():
    return make_hwpx


@pytest.fixture
def zip_factory():
    return make_zip


class FakeOleFile:
    """In-memory stand-in for olefile.OleFileIO keyed by stream path."""

    def __init__(self, streams: dict, properties: dict = None):
        self.streams = streams
        self.properties = properties or {}
        self.closed = False

    @staticmethod
    def _key(name) -> str:
        return '/'.join(name) if isinstance(name, (list, tuple)) else name

    def exists(self, name) -> bool:
        key = self._key(name)
        return key in self.streams or key in self.properties

    def openstream(self, name):
        key = self._key(name)
        if key not in self.streams:
            raise OSError(f"stream not found: {key}")
        return io.BytesIO(self.streams[key])

    def listdir(self):
        return [key.split('/') for key in self.streams]

    def getproperties(self, name, convert_time=False):
        return dict(self.properties.get(self._key(name), {}))

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def make_file_header(compressed: bool = True, password: bool = False,
                     distribution: bool = False, version: int = 0x05000300) -> bytes:
    """HWP 5.x FileHeader: 32바이트 서명 + 버전 + 속성 플래그"""
    flags = (0x01 if compressed else 0) | (0x02 if password else 0) | (0x04 if distribution else 0)
    header = b'HWP Document File'.ljust(32, b'\x00') + struct.pack('<II', version, flags)
    return header.ljust(256, b'\x00')


@pytest.fixture
def fake_ole(monkeypatch):
    """olefile.OleFileIO 를 주어진 스트림을 가진 가짜 컨테이너로 교체"""
    def install(streams: dict, properties: dict = None) -> FakeOleFile:
        container = FakeOleFile(streams, properties)
        monkeypatch.setattr(olefile, "OleFileIO", lambda *args, **kwargs: container)
        return container
    return install


@pytest.fixture
def file_header_factory():
    return make_file_header
