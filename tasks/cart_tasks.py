"""购物车相关的 Celery 任务"""

from celery_app import app
from storefront.db.session import SessionLocal
from storefront.services.cart_service import CartService
import logging

logger = logging.getLogger(__name__)

@app.task(name='tasks.cart.cleanup_abandoned_carts')
def cleanup_abandoned_carts(batch_size: int = 500):
    """清理长时间未更新的购物车

    Args:
        batch_size: 批处理大小，默认500条

    Returns:
        清理结果描述
    """
    db = SessionLocal()
    try:
        service = CartService(db)
        count = service.cleanup_abandoned_carts(batch_size)
        db.commit()
        result = f"成功清理 {count} 个过期购物车"
        logger.info(result)
        return result
    except Exception as e:
        logger.error(f"清理过期购物车任务执行失败: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()

# 导出任务
__all__ = [
    'cleanup_abandoned_carts',
]
