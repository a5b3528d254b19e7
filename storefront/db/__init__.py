from .base import Base
from .session import engine


def init_db():
    """按模型元数据建表（迁移不在本项目范围内）"""
    import storefront.models  # noqa: F401  注册所有模型

    Base.metadata.create_all(bind=engine)


__all__ = ["Base", "engine", "init_db"]
