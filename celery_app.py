"""Celery 配置文件"""

from celery import Celery
from celery.schedules import crontab

from storefront.core.config import settings

# 创建 Celery 应用实例
app = Celery('storefront_worker', include=['tasks.cart_tasks'])

# 配置 Redis 作为 broker 和 backend（与缓存分库）
app.conf.broker_url = f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/1"
app.conf.result_backend = f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/2"

# 任务序列化配置
app.conf.task_serializer = 'json'
app.conf.result_serializer = 'json'
app.conf.accept_content = ['json']

app.conf.timezone = 'Asia/Yerevan'
app.conf.enable_utc = True

app.conf.task_routes = {
    'tasks.cart.*': {'queue': 'cart'},
}

# 每天凌晨清理过期购物车
app.conf.beat_schedule = {
    'cleanup-abandoned-carts': {
        'task': 'tasks.cart.cleanup_abandoned_carts',
        'schedule': crontab(hour=3, minute=0),
        'kwargs': {'batch_size': 500},
    },
}

# Worker 配置
app.conf.worker_prefetch_multiplier = 1
app.conf.task_acks_late = True

# 导出应用实例
__all__ = ['app']
