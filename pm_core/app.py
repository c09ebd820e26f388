"""
PawMart FastAPI 主应用
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pm_core import __version__
from pm_core.catalog import DEFAULT_TAXONOMY, CategoryTaxonomy
from pm_core.config import Settings, get_settings
from pm_core.database import DatabaseManager, get_db_manager
from pm_core.services import ImageStorage, create_image_storage
from pm_core.utils.logger import setup_logging, get_logger
from pm_core.utils.errors import PawMartException
from pm_core.middleware.auth import AuthMiddleware
from pm_core.middleware.logging import LoggingMiddleware
from pm_core.api import api_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("Starting PawMart application", version=__version__)

    db_manager: DatabaseManager = app.state.db_manager
    if not await db_manager.check_connection():
        logger.error("Database connection check failed")
        raise RuntimeError("Database connection failed")

    logger.info(
        "PawMart application started",
        categories=len(app.state.taxonomy.main_categories)
    )

    yield  # 应用运行期间

    logger.info("Shutting down PawMart application")
    try:
        await db_manager.close()
    except Exception:
        logger.error("Error during application shutdown", exc_info=True)


def _problem(status: int, title: str, detail: str, code: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "ok": False,
            "error": {
                "type": "about:blank",
                "title": title,
                "status": status,
                "detail": detail,
                "code": code,
                **extra
            }
        }
    )


def create_app(
    settings: Optional[Settings] = None,
    taxonomy: Optional[CategoryTaxonomy] = None,
    image_storage: Optional[ImageStorage] = None,
    db_manager: Optional[DatabaseManager] = None
) -> FastAPI:
    """创建 FastAPI 应用

    分类表、图片存储和数据库管理器在这里构建一次，挂到 app.state 上供路由依赖注入。
    """
    settings = settings or get_settings()

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format
    )

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="PawMart multi-vendor catalog API",
        docs_url="/docs" if settings.api_debug else None,
        redoc_url="/redoc" if settings.api_debug else None,
        openapi_url="/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.taxonomy = taxonomy or CategoryTaxonomy(DEFAULT_TAXONOMY)
    app.state.image_storage = image_storage or create_image_storage(settings)
    app.state.db_manager = db_manager or get_db_manager()

    # 中间件（后添加的在外层）
    app.add_middleware(AuthMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.api_debug else settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.exception_handler(PawMartException)
    async def pawmart_exception_handler(request: Request, exc: PawMartException):
        """处理 PawMart 自定义异常"""
        return exc.to_response(request)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """处理 Pydantic 验证异常"""
        logger.warning("Request validation failed", path=request.url.path, errors=str(exc.errors()))
        return _problem(
            422,
            "Validation Error",
            "Request validation failed",
            "VALIDATION_ERROR",
            validation_errors=jsonable_encoder(exc.errors())
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """处理 HTTP 异常（如未匹配路由）"""
        return _problem(exc.status_code, str(exc.detail), str(exc.detail), f"HTTP_{exc.status_code}")

    @app.exception_handler(500)
    async def internal_server_error_handler(request: Request, exc: Exception):
        """处理未捕获的服务器错误"""
        logger.error("Unhandled server error", exc_info=True)
        return _problem(
            500,
            "Internal Server Error",
            "An internal server error occurred",
            "INTERNAL_SERVER_ERROR"
        )

    @app.get("/healthz")
    async def health_check():
        """健康检查端点"""
        return {"status": "healthy", "version": __version__}

    return app


# 创建应用实例
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "pm_core.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
        log_level=settings.log_level.lower(),
        access_log=False,  # 使用自定义日志中间件
    )
