from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from sqlalchemy import text

from storefront.db.session import engine
from storefront.core.redis import async_redis
from storefront.core.errors import ProblemError, PROBLEM_CONTENT_TYPE, problem_type
from storefront.routers import (
    orders_router,
    cart_router,
    products_router,
    contact_router,
    admin_router,
)
from storefront.schemas.base import HealthCheckResponse

import uvicorn

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

HTTP_PROBLEM_SLUGS = {
    400: "validation-error",
    401: "unauthorized",
    403: "forbidden",
    404: "not-found",
    409: "conflict",
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    # 应用启动时的初始化
    logger.info("Starting application...")

    # 数据库连接检查
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error("❌ Database connection failed: %s", e)
        raise

    # Redis 连接检查
    try:
        await async_redis.ping()
        logger.info("✅ Redis connected successfully")
    except Exception as e:
        logger.warning(f"⚠️  Redis connection failed: {e}")
        logger.warning("⚠️  Application will run without stock caching")

    yield

    # 应用关闭时的清理
    logger.info("Shutting down application...")

# 创建 FastAPI 应用
app = FastAPI(
    title="Storefront API",
    description="电商店铺后端：商品目录、购物车、结算、订单与后台管理",
    version="1.0.0",
    lifespan=lifespan
)

# 添加 CORS 中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(orders_router.router, prefix="/api/v1")
app.include_router(cart_router.router, prefix="/api/v1")
app.include_router(products_router.router, prefix="/api/v1")
app.include_router(contact_router.router, prefix="/api/v1")
app.include_router(admin_router.router, prefix="/api/v1")


def problem_response(request: Request, error: ProblemError, **extra) -> JSONResponse:
    body = error.to_dict(instance=str(request.url))
    body.update(extra)
    return JSONResponse(
        status_code=error.status,
        content=jsonable_encoder(body),
        media_type=PROBLEM_CONTENT_TYPE,
    )

# 全局异常处理
@app.exception_handler(ProblemError)
async def problem_exception_handler(request: Request, exc: ProblemError):
    if exc.status >= 500:
        logger.error(f"Problem: {exc.status} - {exc.title}: {exc.detail}")
    else:
        logger.info(f"Problem: {exc.status} - {exc.title}: {exc.detail}")
    return problem_response(request, exc)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc}")
    error = ProblemError.validation("Request validation failed")
    return problem_response(request, error, errors=exc.errors())

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error(f"HTTP error: {exc.status_code} - {exc.detail}")
    slug = HTTP_PROBLEM_SLUGS.get(exc.status_code, "http-error")
    error = ProblemError(exc.status_code, problem_type(slug), str(exc.detail), str(exc.detail))
    return problem_response(request, error)

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return problem_response(request, ProblemError.internal())

# 健康检查端点
@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """健康检查接口"""
    return HealthCheckResponse()

@app.get("/")
async def read_root():
    """API 根路径"""
    return {
        "message": "Storefront API",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
