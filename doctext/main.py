from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
import structlog

from doctext.core.config import settings
from doctext.api.v1.api import api_router
from doctext.core.exceptions import DocTextException
from doctext.core.error_handlers import (
    doctext_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    general_exception_handler
)
from doctext.utils.file_utils import ensure_directory


logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False) if settings.LOG_FORMAT == "json" else structlog.dev.ConsoleRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting up", project=settings.PROJECT_NAME, version=settings.VERSION)

    # 업로드/변환 작업 디렉토리 (요청별 파일은 uuid 이름으로 생성 후 삭제)
    ensure_directory(settings.UPLOAD_DIR)
    ensure_directory(settings.WORK_DIR)

    yield

    logger.info("Shutting down")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="HWP/HWPX/PDF/DOCX/XLSX/TXT/CSV 파일에서 AI 분석용 텍스트를 추출하는 API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "extract",
            "description": "문서에서 텍스트를 추출하는 엔드포인트",
        },
        {
            "name": "documents",
            "description": "문서 저장소 CRUD 엔드포인트",
        },
        {
            "name": "health",
            "description": "서버 상태 확인 엔드포인트",
        }
    ]
)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add exception handlers
app.add_exception_handler(DocTextException, doctext_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include routers
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/", tags=["health"], summary="API 정보 확인")
async def root():
    """
    API 기본 정보를 반환합니다.

    Returns:
        project: 프로젝트 이름
        version: API 버전
        status: 서버 상태
        docs: API 문서 URL
    """
    return {
        "project": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health", tags=["health"], summary="헬스 체크")
async def health_check():
    """서버 상태를 확인합니다."""
    return {"status": "healthy"}
