"""Redis 客户端配置模块"""

from redis import Redis
from redis.asyncio import Redis as AsyncRedis

from storefront.core.config import settings

# 统一的 Redis 配置
REDIS_URL = settings.redis_url

# 基础 Redis 客户端（库存缓存使用同步客户端，健康检查使用异步客户端）
redis_client = Redis.from_url(REDIS_URL, decode_responses=True)
async_redis = AsyncRedis.from_url(REDIS_URL, decode_responses=True)


def stock_cache_key(variant_id: str) -> str:
    """规格库存缓存键"""
    return f"stock:variant:{variant_id}"


# 导出
__all__ = [
    "redis_client",
    "async_redis",
    "stock_cache_key",
    "REDIS_URL"
]
