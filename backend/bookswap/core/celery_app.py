from __future__ import annotations

from celery import Celery

from bookswap.core.config import settings


# 创建 Celery 应用
celery_app = Celery(
    "bookswap",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["bookswap.tasks.notifications", "bookswap.tasks.ledger"],
)

# Celery 序列化与时区配置
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # 测试或单进程部署时在调用方进程内同步执行
    task_always_eager=settings.celery_task_always_eager,
    task_eager_propagates=True,
)
