"""
File utility functions.
"""
import os
import shutil
import uuid
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import AsyncIterator, Iterator

import aiofiles
import structlog

logger = structlog.get_logger()


def safe_suffix(filename: str) -> str:
    """파일명에서 확장자만 추출 (경로/특수문자 무시)"""
    suffix = Path(filename or "").suffix.lower()
    if not suffix or not suffix[1:].isalnum():
        return ""
    return suffix


def unique_path(directory: str, filename: str = "") -> str:
    """Build a uuid4-named path in ``directory`` keeping the file extension."""
    return os.path.join(directory, f"{uuid.uuid4().hex}{safe_suffix(filename)}")


async def read_file(file_path: str) -> bytes:
    async with aiofiles.open(file_path, 'rb') as f:
        return await f.read()


async def write_file(file_path: str, data: bytes) -> None:
    async with aiofiles.open(file_path, 'wb') as f:
        await f.write(data)


@asynccontextmanager
async def temporary_file(directory: str, data: bytes, filename: str = "") -> AsyncIterator[str]:
    """
    Write ``data`` to a uuid-named file and remove it on exit.

    Args:
        directory: Parent directory (created if missing)
        data: File contents
        filename: Original filename, used only for its extension

    Yields:
        Path of the temporary file
    """
    ensure_directory(directory)
    file_path = unique_path(directory, filename)
    try:
        await write_file(file_path, data)
        yield file_path
    finally:
        cleanup_file(file_path)


@contextmanager
def temporary_directory(parent: str) -> Iterator[str]:
    """uuid 이름의 작업 디렉토리 생성, 종료 시 통째로 삭제"""
    ensure_directory(parent)
    directory = os.path.join(parent, uuid.uuid4().hex)
    os.makedirs(directory)
    try:
        yield directory
    finally:
        cleanup_directory(directory)


def cleanup_file(file_path: str):
    """
    Safely remove a file if it exists.

    Args:
        file_path: Path to file to remove
    """
    try:
        if os.path.exists(file_path):
            os.remove(file_path)
            logger.debug("Cleaned up file", path=file_path)
    except OSError as e:
        logger.warning("Failed to cleanup file", path=file_path, error=str(e))


def cleanup_directory(directory: str):
    try:
        shutil.rmtree(directory)
        logger.debug("Cleaned up directory", path=directory)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to cleanup directory", path=directory, error=str(e))


def ensure_directory(directory: str):
    """
    Ensure directory exists, create if not.

    Args:
        directory: Path to directory
    """
    Path(directory).mkdir(parents=True, exist_ok=True)
