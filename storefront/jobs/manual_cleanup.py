"""过期购物车清理本地执行脚本"""

import argparse
import logging
from storefront.db.session import SessionLocal
from storefront.services.cart_service import CartService

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def run_cleanup(batch_size: int = 500, dry_run: bool = False, ttl_days: int = None):
    """执行购物车清理

    Args:
        batch_size: 批处理大小
        dry_run: 是否为试运行模式（只统计不删除）
        ttl_days: 过期天数，默认取配置
    """
    db = SessionLocal()
    try:
        service = CartService(db)
        if dry_run:
            count = service.count_abandoned_carts(ttl_days)
            logger.info(f"试运行模式：发现 {count} 个过期购物车待清理")
            return count

        count = service.cleanup_abandoned_carts(batch_size, ttl_days)
        logger.info(f"清理完成：成功清理 {count} 个过期购物车")
        return count
    except Exception as e:
        logger.error(f"清理执行失败: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()

def main(argv=None):
    parser = argparse.ArgumentParser(description='过期购物车清理工具')
    parser.add_argument(
        '--batch-size',
        type=int,
        default=500,
        help='批处理大小 (默认: 500)'
    )
    parser.add_argument(
        '--ttl-days',
        type=int,
        default=None,
        help='购物车过期天数 (默认: CART_TTL_DAYS)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='试运行模式，只统计不执行清理'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='详细输出模式'
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        result = run_cleanup(args.batch_size, args.dry_run, args.ttl_days)
        if args.dry_run:
            print(f"📊 试运行结果：发现 {result} 个过期购物车")
        else:
            print(f"✅ 清理完成：处理了 {result} 个购物车")
    except Exception as e:
        print(f"❌ 执行失败: {str(e)}")
        return 1

    return 0

if __name__ == "__main__":
    exit(main())
